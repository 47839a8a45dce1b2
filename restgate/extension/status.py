from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus

UNKNOWN_REASON_PHRASE = "Unknown HTTP Status Code"


class Family(str, Enum):
    """Status code class, derived from the hundreds digit."""

    INFORMATIONAL = "INFORMATIONAL"
    SUCCESSFUL = "SUCCESSFUL"
    REDIRECTION = "REDIRECTION"
    CLIENT_ERROR = "CLIENT_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    OTHER = "OTHER"

    @staticmethod
    def of(code: int) -> "Family":
        return _FAMILIES.get(int(code) // 100, Family.OTHER)


_FAMILIES = {
    1: Family.INFORMATIONAL,
    2: Family.SUCCESSFUL,
    3: Family.REDIRECTION,
    4: Family.CLIENT_ERROR,
    5: Family.SERVER_ERROR,
}


@dataclass(frozen=True, slots=True)
class StatusInfo:
    """A resolved status: code, reason phrase and family."""

    code: int
    reason_phrase: str
    family: Family

    @property
    def is_successful(self) -> bool:
        return self.family is Family.SUCCESSFUL


class ExtendedStatus(Enum):
    """WebDAV and friends: codes some registries leave out.

    Values are (code, reason phrase).
    """

    MULTI_STATUS = (207, "Multi-Status")
    UNPROCESSABLE_ENTITY = (422, "Unprocessable Entity")
    LOCKED = (423, "Locked")
    FAILED_DEPENDENCY = (424, "Failed Dependency")
    INSUFFICIENT_STORAGE = (507, "Insufficient Storage")

    @property
    def code(self) -> int:
        return self.value[0]

    @property
    def reason_phrase(self) -> str:
        return self.value[1]

    @property
    def family(self) -> Family:
        return Family.of(self.code)

    def info(self) -> StatusInfo:
        return StatusInfo(code=self.code, reason_phrase=self.reason_phrase, family=self.family)


_EXTENDED = {s.code: s for s in ExtendedStatus}


def status_from_code(code: int) -> StatusInfo:
    """Resolve a numeric status code.

    Lookup order:
    - ExtendedStatus (fixed reason phrases, stable across Python versions)
    - http.HTTPStatus
    - synthetic "unknown" entry in Family.OTHER

    Never raises for an integer input.
    """

    code = int(code)
    ext = _EXTENDED.get(code)
    if ext is not None:
        return ext.info()
    try:
        std = HTTPStatus(code)
    except ValueError:
        return StatusInfo(code=code, reason_phrase=UNKNOWN_REASON_PHRASE, family=Family.OTHER)
    return StatusInfo(code=code, reason_phrase=std.phrase, family=Family.of(code))
