import datetime
import decimal
import uuid
import sqlalchemy
import sarepo
from .errors import BadRequestError


def parse_attr(column, attr_val):
    """
    Parse the supplied `attr_val` so it can be saved in the SQLAlchemy `column`
    None is returned unchanged: unset fields are skipped when entities are merged

    :param column: SQLAlchemy column
    :param attr_val: json attribute value
    :return: processed value
    """
    if attr_val is None:
        return attr_val

    try:
        python_type = column.type.python_type
    except NotImplementedError as exc:
        # A custom type has been implemented, the user/dev should know how to handle it
        sarepo.log.debug(exc)
        return attr_val

    # skip type coercion on JSON columns, since they could be anything
    if isinstance(column.type, sqlalchemy.types.JSON):
        return attr_val

    if isinstance(attr_val, python_type) and not (python_type is int and isinstance(attr_val, bool)):
        return attr_val

    try:
        if python_type == datetime.datetime:
            # "2024-01-31T10:00:00", "2024-01-31 10:00:00.123"
            return datetime.datetime.fromisoformat(str(attr_val))
        if python_type == datetime.date:
            return datetime.date.fromisoformat(str(attr_val))
        if python_type == datetime.time:
            return datetime.time.fromisoformat(str(attr_val))
        if python_type == bool or isinstance(attr_val, bool):
            # bools are only accepted for boolean columns, and only as json booleans
            raise ValueError(f"{attr_val!r} is not a {python_type.__name__}")
        if python_type == decimal.Decimal:
            return decimal.Decimal(str(attr_val))
        if python_type == uuid.UUID:
            return uuid.UUID(str(attr_val))
        if python_type in (dict, list) or isinstance(attr_val, (dict, list)):
            raise ValueError(f"{attr_val!r} is not a {python_type.__name__}")
        if python_type == int and isinstance(attr_val, float) and not attr_val.is_integer():
            raise ValueError(f"{attr_val!r} is not an integer")
        return python_type(attr_val)
    except (TypeError, ValueError, decimal.InvalidOperation) as exc:
        raise BadRequestError(f'Invalid value for "{column.key}": {exc}')
