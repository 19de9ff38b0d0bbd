"""
Machine-readable asset audit report.

Field names follow the JSON layout consumed by existing report tooling.
"""
from typing import Dict
from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import Field


class OversizeAssetEntry(BaseModel):
    """One oversize asset with the stories referencing it."""
    id: Optional[int] = None
    filename: str
    content_type: Optional[str] = None
    filesize: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    referenced_in: List[str] = Field(default_factory = list)


class SpaceReport(BaseModel):
    """Per-space aggregate."""
    resolved: int
    unresolved: int
    oversize: int
    total_bytes: int
    oversize_assets: List[OversizeAssetEntry] = Field(default_factory = list)


class ReportCounts(BaseModel):
    """Run-level counts."""
    stories: int
    referenced_unique: int
    resolved: int
    unresolved: int
    oversize: int


class AuditReport(BaseModel):
    """Top-level JSON report."""
    threshold_bytes: int
    counts: ReportCounts
    spaces: Dict[str, SpaceReport] = Field(default_factory = dict)
