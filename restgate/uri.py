from __future__ import annotations

from urllib.parse import quote


def encode(value: str) -> str:
    """Percent-encode a string for use as a single path segment or query value.

    Only letters, digits and ``.-*_`` stay literal. Spaces become ``%20``
    (never ``+``); ``/`` and ``~`` are encoded too.
    """

    return quote(str(value), safe="*").replace("~", "%7E")
