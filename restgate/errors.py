from __future__ import annotations

from typing import Optional


class RestGateError(Exception):
    """
    Base exception for all restgate failures.
    """

    pass


class TransportError(RestGateError):
    """
    Raised by a transport when no response could be obtained
    (connection refused, DNS failure, timeout, broken stream).
    """

    pass


class NoResponseError(RestGateError):
    """
    Raised by the raw client methods when the transport failed and no
    response exists to return.
    """

    def __init__(self, method: str, url: str):
        super().__init__(f"no response obtained for {method} {url}")
        self.method = method
        self.url = url


class EntityDecodeError(RestGateError):
    """
    Raised when a response body cannot be converted to the requested shape.
    """

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class OriginNotAllowedError(RestGateError):
    """
    Raised when a cross-origin request carries an origin outside the allow-list.
    """

    status_code = 403

    def __init__(self, origin: str):
        super().__init__(f"Origin not allowed: {origin}")
        self.origin = origin


class UploadTooLargeError(RestGateError):
    """
    Raised when uploaded file parts exceed the configured byte cap.
    """

    status_code = 413

    def __init__(self, max_bytes: int):
        super().__init__(f"upload exceeds {max_bytes} bytes")
        self.max_bytes = max_bytes
