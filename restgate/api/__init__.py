"""restgate API package.

FastAPI service wiring for the CORS filter, access logging and the
multipart helpers.
"""

from .server import create_app  # noqa: F401
