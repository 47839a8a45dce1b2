from __future__ import annotations

import re
from typing import Dict, Optional
from urllib.parse import unquote_plus

from starlette.datastructures import FormData, UploadFile

from restgate.errors import UploadTooLargeError

FILE_PART_KEY = "file"
FILENAME = "filename"
_FILENAME_STRIP = re.compile(r'[="]')


def parse_filename(content_disposition: str) -> str:
    """Extract the filename from a Content-Disposition value.

    Everything up to and including the first ``filename`` token is dropped,
    ``=`` and ``"`` are removed, and the rest is URL-decoded (``+`` is a space).

    >>> parse_filename('form-data; name="file"; filename="a%20b.txt"')
    'a b.txt'
    """

    _, _, tail = content_disposition.partition(FILENAME)
    return unquote_plus(_FILENAME_STRIP.sub("", tail), encoding="utf-8")


async def extract_part(form: FormData, key: str) -> Optional[str]:
    """Return a form part as text, or None if the form has no such key."""

    value = form.get(key)
    if value is None:
        return None
    if isinstance(value, UploadFile):
        await value.seek(0)
        return (await value.read()).decode("utf-8")
    return str(value)


async def extract_files(form: FormData, *, max_bytes: Optional[int] = None) -> Dict[str, bytes]:
    """Collect every upload under the ``file`` key as decoded filename -> bytes.

    Parts without a Content-Disposition mentioning ``filename`` are skipped.
    A repeated filename keeps the last part.

    Raises
    - UploadTooLargeError: the parts read so far exceed ``max_bytes``. Reading
      stops at the first byte past the cap.
    """

    files: Dict[str, bytes] = {}
    total = 0
    for part in form.getlist(FILE_PART_KEY):
        if not isinstance(part, UploadFile):
            continue
        disposition = part.headers.get("content-disposition")
        if not disposition or FILENAME not in disposition:
            continue
        await part.seek(0)
        if max_bytes is None:
            data = await part.read()
        else:
            data = await part.read(max_bytes - total + 1)
            if total + len(data) > max_bytes:
                raise UploadTooLargeError(max_bytes)
        total += len(data)
        files[parse_filename(disposition)] = data
    return files
