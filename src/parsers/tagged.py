# src/parsers/tagged.py
"""
Tagged-line dialect: one finding per line, formatted as

    [<type>] [<fileType>] [<severity>] <path>

Lines that do not match are kept as "unknown" findings carrying the raw line.
"""
import re

from .base import LogDialect
from .models import ParsedReport, TaggedFinding

TAGGED_LINE = re.compile(r"\[(.*?)\] \[(.*?)\] \[(.*?)\] (.*)")
UNKNOWN = "unknown"


def parse_tagged_line(line: str) -> TaggedFinding:
    match = TAGGED_LINE.search(line)
    if match:
        return TaggedFinding(type=match.group(1), file_type=match.group(2), severity=match.group(3), path=match.group(4))
    return TaggedFinding(type=UNKNOWN, file_type=UNKNOWN, severity=UNKNOWN, path=line)


class TaggedLineDialect(LogDialect):
    name = "tagged"

    def parse(self, raw_text: str) -> ParsedReport:
        findings = []
        for line in (raw_text or "").split("\n"):
            line = line.rstrip("\r")
            if line.strip() == "":
                continue
            findings.append(parse_tagged_line(line))
        return ParsedReport(dialect=self.name, vulnerabilities=findings)
