"""HTTP header names used by the client and the CORS filter."""

__all__ = [
    "ACCEPT",
    "CONTENT_TYPE",
    "CONTENT_DISPOSITION",
    "ORIGIN",
    "ACCESS_CONTROL_ALLOW_ORIGIN",
    "ACCESS_CONTROL_ALLOW_CREDENTIALS",
    "ACCESS_CONTROL_ALLOW_METHODS",
    "ACCESS_CONTROL_ALLOW_HEADERS",
    "ACCESS_CONTROL_EXPOSE_HEADERS",
    "ACCESS_CONTROL_REQUEST_METHOD",
    "ACCESS_CONTROL_REQUEST_HEADERS",
    "CONTENT_DISPOSITION_ATTACHMENT_FILENAME",
    "PRAGMA",
]

ACCEPT = "Accept"
CONTENT_TYPE = "Content-Type"
CONTENT_DISPOSITION = "Content-Disposition"

ORIGIN = "Origin"
ACCESS_CONTROL_ALLOW_ORIGIN = "Access-Control-Allow-Origin"
ACCESS_CONTROL_ALLOW_CREDENTIALS = "Access-Control-Allow-Credentials"
ACCESS_CONTROL_ALLOW_METHODS = "Access-Control-Allow-Methods"
ACCESS_CONTROL_ALLOW_HEADERS = "Access-Control-Allow-Headers"
ACCESS_CONTROL_EXPOSE_HEADERS = "Access-Control-Expose-Headers"
ACCESS_CONTROL_REQUEST_METHOD = "Access-Control-Request-Method"
ACCESS_CONTROL_REQUEST_HEADERS = "Access-Control-Request-Headers"

# Prefix only; append the (quoted) filename.
CONTENT_DISPOSITION_ATTACHMENT_FILENAME = "attachment; filename="
PRAGMA = "Pragma"
