from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class HealthOut(BaseModel):
    """Liveness payload."""

    ok: bool = True
    cors_allowed_origins: List[str] = Field(default_factory=list)


class StatusOut(BaseModel):
    """A status registry entry."""

    code: int
    reason_phrase: str
    family: str


class FilesOut(BaseModel):
    """Summary of a multipart upload: text description plus file sizes by name."""

    description: Optional[str] = None
    files: Dict[str, int] = Field(default_factory=dict)
