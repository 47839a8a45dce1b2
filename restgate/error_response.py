from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel

from restgate.extension.status import ExtendedStatus, StatusInfo, status_from_code


class ErrorResponse(BaseModel):
    """Standard error payload returned by restgate services.

    ``code`` and ``reason_phrase`` always come from the status registry so the
    body agrees with the HTTP status line.
    """

    code: int
    reason_phrase: str
    message: Optional[str] = None
    payload: Optional[Any] = None

    @classmethod
    def of(
        cls,
        status: Union[int, StatusInfo, ExtendedStatus],
        message: Optional[str] = None,
        payload: Any = None,
    ) -> "ErrorResponse":
        if isinstance(status, ExtendedStatus):
            info = status.info()
        elif isinstance(status, StatusInfo):
            info = status
        else:
            info = status_from_code(int(status))
        return cls(
            code=info.code, reason_phrase=info.reason_phrase, message=message, payload=payload
        )

    @classmethod
    def from_response(
        cls, response: Any, message: Optional[str] = None, payload: Any = None
    ) -> "ErrorResponse":
        """Build from anything with a ``status`` or ``status_code`` attribute."""

        code = getattr(response, "status", None)
        if code is None:
            code = getattr(response, "status_code")
        return cls.of(int(code), message=message, payload=payload)
