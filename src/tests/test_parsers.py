from parsers.dialects import DIALECTS, dialect_for_tool, get_dialect, parse, register_dialect
from parsers.base import LogDialect
from parsers.models import ParsedReport, TaggedFinding, Vulnerability
from parsers.narrative import ParserState, _NarrativeParser, parse_alert
from parsers.severity import infer_severity
import pytest


# Tagged-line dialect

def test_tagged_line_is_parsed_into_fields():
    report = parse("[sql-injection] [java] [high] com/app/Main.java", "tagged")
    assert len(report.vulnerabilities) == 1
    finding = report.vulnerabilities[0]
    assert isinstance(finding, TaggedFinding)
    assert finding.type == "sql-injection"
    assert finding.file_type == "java"
    assert finding.severity == "high"
    assert finding.path == "com/app/Main.java"


def test_tagged_line_without_brackets_is_unknown():
    report = parse("no brackets here", "tagged")
    assert len(report.vulnerabilities) == 1
    finding = report.vulnerabilities[0]
    assert finding.type == "unknown"
    assert finding.file_type == "unknown"
    assert finding.severity == "unknown"
    assert finding.path == "no brackets here"


def test_tagged_skips_blank_lines_and_keeps_order():
    text = "\n[a] [java] [low] A.java\n   \n[b] [xml] [info] AndroidManifest.xml\r\n\n"
    report = parse(text, "tagged")
    assert [f.type for f in report.vulnerabilities] == ["a", "b"]
    assert report.vulnerabilities[1].path == "AndroidManifest.xml"
    assert report.native_reports == []


def test_tagged_severity_is_taken_verbatim():
    report = parse("[weak-password] [java] [low] Foo.java", "tagged")
    assert report.vulnerabilities[0].severity == "low"


def test_tagged_empty_input():
    assert parse("", "tagged").vulnerabilities == []


# Narrative dialect

def test_narrative_vulnerability_with_risk():
    text = (
        "[!] Hardcoded API Key detected in assets/config.json (line 12): plaintext key\n"
        "└ Exploitation Risk: key exposure\n"
    )
    report = parse(text, "narrative")
    assert len(report.vulnerabilities) == 1
    vuln = report.vulnerabilities[0]
    assert isinstance(vuln, Vulnerability)
    assert vuln.type == "Hardcoded API Key"
    assert vuln.file == "assets/config.json"
    assert vuln.line == "12"
    assert vuln.details == "plaintext key"
    assert vuln.risk == "key exposure"
    assert vuln.severity == "high"


def test_narrative_alert_without_line_information():
    report = parse("[!] Debug Mode Enabled detected in AndroidManifest.xml\n└ Exploitation Risk: attach debugger", "narrative")
    vuln = report.vulnerabilities[0]
    assert vuln.file == "AndroidManifest.xml"
    assert vuln.line is None
    assert vuln.details == ""
    assert vuln.severity == "medium"


def test_narrative_schema_url_alerts_are_discarded():
    text = (
        "[!] Plain HTTP URL detected in res/layout/main.xml (line 2): http://schemas.android.com/apk/res/android\n"
        "└ Exploitation Risk: none\n"
    )
    report = parse(text, "narrative")
    assert report.vulnerabilities == []


def test_narrative_native_sections():
    text = "\n".join([
        "Searching for vulnerabilities...",
        "[+] Found 2 .so files",
        "[+] Analyzing libfoo.so...",
        "[⚠] Stack Canary: not found",
        "[✓] NX: enabled",
        "[✔] Analysis complete",
        "------------------------",
        "[+] Analyzing libbar.so...",
        "[✔] PIE: enabled",
        "Analysis finished in 3.2s",
    ])
    report = parse(text, "narrative")
    assert [r.file for r in report.native_reports] == ["libfoo.so", "libbar.so"]
    foo = report.native_reports[0]
    assert [(i.type, i.severity) for i in foo.issues] == [("Stack Canary", "medium"), ("NX", "info")]
    assert foo.issues[0].details == "Stack Canary: not found"
    assert [i.type for i in report.native_reports[1].issues] == ["PIE"]
    assert report.vulnerabilities == []


def test_narrative_native_issues_after_alert_stay_in_section():
    text = "\n".join([
        "[+] Analyzing libfoo.so...",
        "[⚠] Stack Canary: not found",
        "[!] Hardcoded Secret detected in libfoo.so (line 1): key",
        "└ Exploitation Risk: leak",
        "[⚠] RELRO: partial",
    ])
    report = parse(text, "narrative")
    assert [i.type for i in report.native_reports[0].issues] == ["Stack Canary", "RELRO"]
    assert [v.type for v in report.vulnerabilities] == ["Hardcoded Secret"]


def test_narrative_native_issue_after_alert_without_risk():
    text = "\n".join([
        "[+] Analyzing libbar.so...",
        "[!] Weak Cipher detected in libbar.so (line 4): DES",
        "[⚠] NX: disabled",
    ])
    report = parse(text, "narrative")
    assert [i.type for i in report.native_reports[0].issues] == ["NX"]
    assert report.vulnerabilities[0].risk is None


def test_narrative_new_section_replaces_current_report():
    text = "\n".join([
        "[+] Analyzing liba.so...",
        "[!] Debug Flag detected in liba.so",
        "[+] Analyzing libb.so...",
        "[✓] PIE: enabled",
    ])
    report = parse(text, "narrative")
    assert [r.file for r in report.native_reports] == ["liba.so", "libb.so"]
    assert report.native_reports[0].issues == []
    assert [i.type for i in report.native_reports[1].issues] == ["PIE"]
    assert len(report.vulnerabilities) == 1


def test_narrative_pending_vulnerability_flushed_on_unexpected_content():
    text = "\n".join([
        "[!] Insecure WebView detected in com/app/Web.java (line 40): setJavaScriptEnabled(true)",
        "some unrelated banner",
        "[!] Auth Token detected in com/app/Api.java (line 3): bearer",
        "└ Exploitation Risk: account takeover",
    ])
    report = parse(text, "narrative")
    assert [v.type for v in report.vulnerabilities] == ["Insecure WebView", "Auth Token"]
    assert report.vulnerabilities[0].risk is None
    assert report.vulnerabilities[1].severity == "critical"


def test_narrative_consecutive_alerts_keep_both():
    text = "\n".join([
        "[!] Weak Cipher detected in a/B.java (line 1): DES",
        "[!] Weak Hash detected in a/C.java (line 2): MD5",
    ])
    report = parse(text, "narrative")
    assert [v.file for v in report.vulnerabilities] == ["a/B.java", "a/C.java"]


def test_narrative_malformed_lines_never_raise():
    text = "\n".join([
        "[!] nothing useful here",
        "└ Exploitation Risk: orphan risk",
        "[⚠] glyph outside a native section",
        "[+] Analyzing ",
        "\x00\x01 binary junk",
        "[!]",
    ])
    report = parse(text, "narrative")
    assert report.vulnerabilities == []
    assert report.native_reports == []


def test_narrative_state_transitions():
    parser = _NarrativeParser()
    assert parser.state is ParserState.IDLE
    parser.feed("[+] Analyzing libx.so...")
    assert parser.state is ParserState.IN_NATIVE_SECTION
    parser.feed("[!] Hardcoded Secret detected in x/Y.java (line 9): s3cr3t")
    assert parser.state is ParserState.IN_VULNERABILITY
    parser.feed("└ Exploitation Risk: leak")
    assert parser.state is ParserState.IN_NATIVE_SECTION
    assert len(parser.finish().vulnerabilities) == 1


def test_narrative_state_returns_to_idle_outside_native_section():
    parser = _NarrativeParser()
    parser.feed("[!] Hardcoded Secret detected in x/Y.java (line 9): s3cr3t")
    parser.feed("└ Exploitation Risk: leak")
    assert parser.state is ParserState.IDLE


def test_parse_alert_grammar():
    assert parse_alert("[!] SQL Injection detected in db/Dao.java (line 77): rawQuery") == {
        "type": "SQL Injection",
        "file": "db/Dao.java",
        "line": "77",
        "details": "rawQuery",
        "severity": "critical",
    }
    assert parse_alert("[!] just words") is None


# Severity inference

@pytest.mark.parametrize("vulnerability_type,expected", [
    ("Private Key in source", "critical"),
    ("Weak Password Storage", "critical"),
    ("Hardcoded API Key", "high"),
    ("INSECURE random", "high"),
    ("Debuggable build", "medium"),
    ("Obfuscated code", "medium"),
    ("Plain HTTP URL", "low"),
    ("Something else", "medium"),
])
def test_infer_severity(vulnerability_type, expected):
    assert infer_severity(vulnerability_type) == expected


# Dialect registry

def test_dialect_for_tool_uses_registry(registry):
    assert dialect_for_tool(registry, "reconizex").name == "tagged"
    assert dialect_for_tool(registry, "secureapk").name == "narrative"


def test_unknown_dialect_raises_key_error():
    with pytest.raises(KeyError):
        get_dialect("no-such-dialect")


def test_register_custom_dialect():
    class LineCount(LogDialect):
        name = "line-count-test"

        def parse(self, raw_text):
            return ParsedReport(dialect=self.name)

    register_dialect(LineCount())
    try:
        assert parse("anything", "line-count-test").dialect == "line-count-test"
    finally:
        DIALECTS.pop("line-count-test", None)
