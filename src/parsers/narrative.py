# src/parsers/narrative.py
"""
Narrative-log dialect, as emitted by scanners that print a running commentary:

    [!] Hardcoded API Key detected in assets/config.json (line 12): plaintext key
    └ Exploitation Risk: key exposure
    [+] Found 2 .so files
    [+] Analyzing libnative.so...
    [⚠] Stack canary: not found
    [✓] NX: enabled

Parsed in one pass by a small state machine. Severity is not present in the
text and is inferred from the vulnerability type.
"""
import enum

from .base import LogDialect
from .models import NativeIssue, NativeLibraryReport, ParsedReport, Vulnerability
from .severity import infer_severity

ALERT_PREFIX = "[!]"
NATIVE_SECTION_PREFIX = "[+] Analyzing "
RISK_MARKER = "└ Exploitation Risk:"
ANDROID_SCHEMA_URL = "http://schemas.android.com/"
DETECTED_IN = " detected in "
LINE_MARKER = " (line "

ISSUE_GLYPHS = {
    "[⚠]": "medium",
    "[✓]": "info",
    "[✔]": "info",
}

NOISE_MARKERS = (
    "Searching for vulnerabilities",
    "Analysis completed in",
    "Analysis finished in",
)
NATIVE_DONE_MARKERS = ("Analysis complete", "Analysis finished")


class ParserState(enum.Enum):
    IDLE = "idle"
    IN_NATIVE_SECTION = "in_native_section"
    IN_VULNERABILITY = "in_vulnerability"


def is_noise(line: str) -> bool:
    if line == "" or line.startswith("---"):
        return True
    if any(marker in line for marker in NOISE_MARKERS):
        return True
    # "[+] Found 3 .so files" header
    return line.startswith("[+] Found") and ".so files" in line


def parse_alert(line: str):
    """
    Split "[!] <type> detected in <file>[ (line <n>): <details>]" into its parts.
    Returns None for alert lines that do not follow the grammar.
    """
    parts = line[len(ALERT_PREFIX):].strip().split(DETECTED_IN)
    if len(parts) < 2:
        return None
    vulnerability_type = parts[0].strip()
    file_info = parts[1].split(LINE_MARKER)
    line_number = None
    details = ""
    if len(file_info) > 1:
        line_and_details = file_info[1].split("): ")
        line_number = line_and_details[0].strip().rstrip(")") or None
        details = line_and_details[1].strip() if len(line_and_details) > 1 else ""
    return {
        "type": vulnerability_type,
        "file": file_info[0].strip(),
        "line": line_number,
        "details": details,
        "severity": infer_severity(vulnerability_type),
    }


class _NarrativeParser:
    def __init__(self):
        self.state = ParserState.IDLE
        self.vulnerabilities = []
        self.native_reports = []
        self.current_report = None
        self.pending = None
        self._transitions = {
            ParserState.IDLE: self._on_idle,
            ParserState.IN_NATIVE_SECTION: self._on_native_section,
            ParserState.IN_VULNERABILITY: self._on_vulnerability,
        }

    def feed(self, line: str):
        line = line.strip()
        if is_noise(line):
            return
        self._transitions[self.state](line)

    def finish(self) -> ParsedReport:
        self._flush()
        return ParsedReport(
            dialect=NarrativeDialect.name,
            vulnerabilities=self.vulnerabilities,
            native_reports=self.native_reports,
        )

    def _on_idle(self, line: str):
        self._start_record(line)

    def _on_native_section(self, line: str):
        glyph = next((g for g in ISSUE_GLYPHS if line.startswith(g)), None)
        if glyph is None:
            self._start_record(line)
            return
        details = line[len(glyph):].strip()
        if any(marker in details for marker in NATIVE_DONE_MARKERS):
            return
        self.current_report.issues.append(
            NativeIssue(type=details.split(":")[0].strip(), details=details, severity=ISSUE_GLYPHS[glyph])
        )

    def _on_vulnerability(self, line: str):
        if line.startswith(RISK_MARKER):
            self.pending["risk"] = line[len(RISK_MARKER):].strip()
            self._flush()
            return
        # Unexpected content: keep the pending finding as it is, then handle the line
        # in the state the flush returned to
        self._flush()
        self._transitions[self.state](line)

    def _start_record(self, line: str):
        """Handle lines that open a new record; anything else is noise."""
        if line.startswith(NATIVE_SECTION_PREFIX) and ".so" in line:
            name = line[len(NATIVE_SECTION_PREFIX):].replace("...", "", 1).strip()
            self.current_report = NativeLibraryReport(file=name)
            self.native_reports.append(self.current_report)
            self.state = ParserState.IN_NATIVE_SECTION
            return
        if line.startswith(ALERT_PREFIX):
            if ANDROID_SCHEMA_URL in line:
                return
            parsed = parse_alert(line)
            if parsed is None:
                return
            self.pending = parsed
            self.state = ParserState.IN_VULNERABILITY

    def _flush(self):
        """Emit the pending vulnerability and resume the open native section, if any."""
        if self.pending:
            self.vulnerabilities.append(Vulnerability(**self.pending))
        self.pending = None
        self.state = ParserState.IN_NATIVE_SECTION if self.current_report else ParserState.IDLE


class NarrativeDialect(LogDialect):
    name = "narrative"

    def parse(self, raw_text: str) -> ParsedReport:
        parser = _NarrativeParser()
        for line in (raw_text or "").split("\n"):
            parser.feed(line)
        return parser.finish()
