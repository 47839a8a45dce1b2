"""Outcome-dispatching HTTP client."""

from .entity import EntityReader  # noqa: F401
from .request import Entity, Request, RequestBuilder  # noqa: F401
from .response import HttpResponse, buffer_response, is_successful  # noqa: F401
from .rest_client import Outcome, RestClient  # noqa: F401
from .transport import Invocation, Transport, UrllibTransport, is_timeout  # noqa: F401
