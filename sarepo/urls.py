"""
Route names and absolute resource links
"""
from typing import Any, Mapping, Optional, Protocol
from urllib.parse import urlencode

from .config import get_config


class RequestContext(Protocol):
    """
    The parts of the inbound request used by the controller
    """

    args: Mapping[str, Any]  # query string arguments
    content_type: Optional[str]
    scheme: str
    host: str

    def url_for(self, route_name: str, **params: Any) -> str:
        """
        :return: path of the route (without scheme and host)
        """
        ...


def route_name(resource_name: str, action: str) -> str:
    """
    :param resource_name: eg. "Users"
    :param action: controller action, eg. "get_collection"
    :return: route (endpoint) name, eg. "Users_get_collection"
    """
    return get_config("ROUTE_NAME_FMT").format(resource_name, action)


class UrlBuilder:
    """
    Build absolute urls for the routes of a resource
    using the scheme and host of the current request
    """

    def __init__(self, request_context: RequestContext, resource_name: str) -> None:
        self.request = request_context
        self.resource_name = resource_name

    def rest_url(self, action: str, **params: Any) -> str:
        path = self.request.url_for(route_name(self.resource_name, action), **params)
        return f"{self.request.scheme}://{self.request.host}{path}"

    def collection_url(self, limit: int, offset: int) -> str:
        """
        :return: link to a page of the collection
        """
        return self.rest_url("get_collection") + "?" + urlencode({"limit": limit, "offset": offset})

    def instance_url(self, id: Any) -> str:
        # pylint: disable=redefined-builtin
        return self.rest_url("get_single", id=id)
