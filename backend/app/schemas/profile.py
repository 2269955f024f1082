"""Pydantic schemas for profile import."""
from typing import List
from pydantic import BaseModel


class BulkUploadResponse(BaseModel):
    """Result of a bulk profile upload."""

    created: int
    skipped: int
    errors: List[str] = []
