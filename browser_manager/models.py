from __future__ import annotations

from pydantic import BaseModel, Field


class RevisionRead(BaseModel):
    id: str = Field(..., description="Traffic tag of the new revision, e.g. b1a2b3c")
    url: str = Field(..., description="URL serving the tagged revision")


class ErrorRead(BaseModel):
    detail: str
    error: str = Field(..., description="Error kind, e.g. metadata, upstream, timeout")
