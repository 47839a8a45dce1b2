from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True, slots=True)
class MediaType:
    """A parsed media type such as ``application/json;charset=utf-8``.

    Type, subtype and parameter names are lower-cased; parameter values are kept
    as given (minus surrounding quotes). Equality covers all three parts, so
    ``application/json`` and ``application/json;charset=utf-8`` differ.
    """

    type: str = "*"
    subtype: str = "*"
    parameters: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", self.type.strip().lower())
        object.__setattr__(self, "subtype", self.subtype.strip().lower())
        params = {k.strip().lower(): v for k, v in dict(self.parameters).items()}
        object.__setattr__(self, "parameters", MappingProxyType(params))

    def __hash__(self) -> int:
        return hash((self.type, self.subtype, tuple(sorted(self.parameters.items()))))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MediaType):
            return NotImplemented
        return (
            self.type == other.type
            and self.subtype == other.subtype
            and dict(self.parameters) == dict(other.parameters)
        )

    def __str__(self) -> str:
        out = f"{self.type}/{self.subtype}"
        for k, v in self.parameters.items():
            out += f";{k}={v}"
        return out

    @property
    def charset(self) -> Optional[str]:
        return self.parameters.get("charset")

    def is_compatible(self, other: "MediaType") -> bool:
        """Wildcard-aware match on type/subtype; parameters are ignored."""

        if self.type == "*" or other.type == "*":
            return True
        if self.type != other.type:
            return False
        return self.subtype == "*" or other.subtype == "*" or self.subtype == other.subtype

    @staticmethod
    def value_of(raw: str) -> "MediaType":
        """Parse a media type string.

        Raises
        - ValueError: if the type/subtype part is malformed.
        """

        if raw is None:
            raise ValueError("media type must not be None")
        head, _, rest = str(raw).partition(";")
        head = head.strip()
        if not head:
            raise ValueError(f"invalid media type: {raw!r}")
        if head == "*":
            type_, subtype = "*", "*"
        else:
            type_, sep, subtype = head.partition("/")
            if not sep or not type_.strip() or not subtype.strip():
                raise ValueError(f"invalid media type: {raw!r}")

        params = {}
        for chunk in rest.split(";"):
            name, sep, value = chunk.partition("=")
            if not sep or not name.strip():
                continue
            params[name.strip().lower()] = value.strip().strip('"')
        return MediaType(type_, subtype, params)


def charset_of(content_type: Optional[str], default: str = "utf-8") -> str:
    """Return the charset parameter of a Content-Type value, or ``default``."""

    if not content_type:
        return default
    try:
        return MediaType.value_of(content_type).charset or default
    except ValueError:
        return default


APPLICATION_JSON = MediaType("application", "json")
APPLICATION_JSON_UTF_8 = MediaType("application", "json", {"charset": "utf-8"})
APPLICATION_PDF = MediaType("application", "pdf")
APPLICATION_OCTET_STREAM = MediaType("application", "octet-stream")
APPLICATION_FORM_URLENCODED = MediaType("application", "x-www-form-urlencoded")
TEXT_PLAIN_UTF_8 = MediaType("text", "plain", {"charset": "utf-8"})
