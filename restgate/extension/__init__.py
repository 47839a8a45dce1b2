"""Status, media-type and header registries shared by client and server code."""

from .headers import *  # noqa: F401,F403
from .media_types import APPLICATION_JSON_UTF_8, APPLICATION_PDF, MediaType  # noqa: F401
from .status import ExtendedStatus, Family, StatusInfo, status_from_code  # noqa: F401
