"""
Collection query string arguments

Pagination uses `limit` and `offset`:
- limit: number of items in the page, 0 < limit <= MAX_PAGE_LIMIT
- offset: number of items to skip, offset >= 0
"""
from dataclasses import dataclass
from typing import Any, Mapping
from .config import get_int_config
from .errors import BadRequestError


@dataclass(frozen=True)
class QueryParams:
    """
    Validated pagination arguments, immutable once parsed
    """

    limit: int
    offset: int = 0

    @classmethod
    def parse(cls, args: Mapping[str, Any]) -> "QueryParams":
        """
        :param args: raw query string arguments (eg. request.args)
        :return: QueryParams instance
        :raises BadRequestError: invalid limit or offset
        """
        limit = _parse_int(args.get("limit"), get_int_config("DEFAULT_PAGE_LIMIT"))
        if limit is None or limit <= 0 or limit > get_int_config("MAX_PAGE_LIMIT"):
            raise BadRequestError("Invalid value for limit parameter")

        offset = _parse_int(args.get("offset"), 0)
        if offset is None or offset < 0:
            raise BadRequestError("Invalid value for offset parameter")

        return cls(limit, offset)


def _parse_int(value, default):
    """
    :return: value as int, `default` if no value was supplied, None if value isn't an integer
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
