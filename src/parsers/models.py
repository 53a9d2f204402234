# src/parsers/models.py
from pydantic import BaseModel, Field
from typing import List, Literal, Optional, Union

Severity = Literal['critical', 'high', 'medium', 'low', 'info']
SEVERITY_ORDER = ('critical', 'high', 'medium', 'low', 'info')


class Vulnerability(BaseModel):
    type: str = Field(..., description="Classification label reported by the scanner")
    file: str = Field(..., description="Path inside the decompiled package")
    line: Optional[str] = None
    details: str = ""
    risk: Optional[str] = Field(None, description="Exploitation impact note")
    severity: Severity


class TaggedFinding(BaseModel):
    type: str
    file_type: str
    severity: str  # verbatim from the scanner, "unknown" for unparsable lines
    path: str


class NativeIssue(BaseModel):
    type: str
    details: str
    severity: Severity


class NativeLibraryReport(BaseModel):
    file: str
    issues: List[NativeIssue] = Field(default_factory=list)


class ParsedReport(BaseModel):
    dialect: str
    vulnerabilities: List[Union[Vulnerability, TaggedFinding]] = Field(default_factory=list)
    native_reports: List[NativeLibraryReport] = Field(default_factory=list)
