# src/api/schemas.py
from pydantic import BaseModel, Field, model_validator
from typing import Any, Dict, List, Optional, Union

from parsers.models import ParsedReport, TaggedFinding, Vulnerability

Finding = Union[Vulnerability, TaggedFinding]


class FindingGroups(BaseModel):
    by_severity: Dict[str, List[Finding]] = Field(..., description="Findings grouped by severity, most severe first")
    by_type: Dict[str, List[Finding]] = Field(..., description="Findings grouped by type, in first-seen order")


class AnalysisResponse(BaseModel):
    tool_id: str
    uploaded_filename: str
    completed: bool = Field(..., description="False when only a partial (fallback) result was produced")
    raw_text: str
    job_id: str
    report: Optional[ParsedReport] = Field(None, description="Structured findings, when requested with parse=true")
    stats: Optional[Dict[str, Any]] = None
    groups: Optional[FindingGroups] = None


class ParseRequest(BaseModel):
    raw_text: str = Field(..., description="Raw scanner output")
    tool_id: Optional[str] = Field(None, description="Tool whose dialect to use")
    dialect: Optional[str] = Field(None, description="Dialect name, used when tool_id is not given")

    @model_validator(mode="after")
    def require_tool_or_dialect(self):
        if not self.tool_id and not self.dialect:
            raise ValueError("Either tool_id or dialect is required")
        return self


class ParseResponse(BaseModel):
    report: ParsedReport
    stats: Dict[str, Any]
    groups: FindingGroups


class ToolInfo(BaseModel):
    id: str
    name: str
    dialect: str
    supports_partial: bool
    endpoint: str
