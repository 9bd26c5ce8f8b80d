# sarepo to json encoding

import datetime
import decimal
from flask.json.provider import DefaultJSONProvider
from sqlalchemy import inspect as sqla_inspect
from sqlalchemy.orm.state import InstanceState
from uuid import UUID
import sarepo
from .config import is_debug
from .controller import CollectionResponse
from .metadata import get_metadata
from .validation import Violation


def is_entity(obj) -> bool:
    """
    :return: whether obj is an instance of an SQLAlchemy mapped class
    """
    return isinstance(sqla_inspect(obj, raiseerr=False), InstanceState)


class _SarepoJSONEncoder:
    """
    JSON encoding for entities, collection responses and common types
    """

    # pylint: disable=too-many-return-statements,arguments-differ,method-hidden
    def default(self, obj, **kwargs):
        """
        override the default json encoding
        :param obj: object to be encoded
        :return: encoded/serialized object
        """
        if obj is None:
            return None
        if isinstance(obj, CollectionResponse):
            return obj.to_dict()
        if isinstance(obj, Violation):
            return obj.to_dict()
        if is_entity(obj):
            return get_metadata(type(obj)).to_dict(obj)
        if isinstance(obj, datetime.timedelta):
            return str(obj)
        if isinstance(obj, datetime.datetime):
            return obj.isoformat()
        if isinstance(obj, (datetime.date, datetime.time)):
            return obj.isoformat()
        if isinstance(obj, set):
            return list(obj)
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, decimal.Decimal):
            return float(obj)
        if isinstance(obj, bytes):
            if obj == b"":
                return ""
            sarepo.log.debug("SarepoJSONEncoder: serializing bytes obj")
            return obj.hex()

        # We shouldn't get here in a normal setup
        sarepo.log.warning(f'JSON Encoding Error: Unknown object type "{type(obj)}" for {obj}')
        if not is_debug():  # pragma: no cover
            return {"error": "SarepoJSONEncoder invalid object"}
        return str(obj)


class SarepoJSONProvider(_SarepoJSONEncoder, DefaultJSONProvider):
    """
    Flask JSON encoding
    """

    pass
