from parsers.dialects import parse
from utils.report_utils import calculate_vulnerability_stats, group_by_severity, group_by_type, group_findings


def test_vulnerability_stats_and_grouping():
    report = parse("\n".join([
        "[x] [java] [high] A.java",
        "[y] [java] [low] B.java",
        "[x] [xml] [high] C.xml",
        "garbage",
    ]), "tagged")
    stats = calculate_vulnerability_stats(report)
    assert stats["total_vulnerabilities"] == 4
    assert stats["severity_counts"]["high"] == 2
    assert stats["severity_counts"]["low"] == 1
    assert stats["severity_counts"]["unknown"] == 1

    by_severity = group_by_severity(report.vulnerabilities)
    assert list(by_severity) == ["high", "low", "unknown"]
    by_type = group_by_type(report.vulnerabilities)
    assert list(by_type) == ["x", "y", "unknown"]
    assert len(by_type["x"]) == 2


def test_severity_groups_follow_severity_order():
    report = parse("[a] [java] [low] A.java\n[b] [java] [critical] B.java\n[c] [java] [odd] C.java", "tagged")
    assert list(group_by_severity(report.vulnerabilities)) == ["critical", "low", "odd"]


def test_native_issue_stats():
    report = parse("[+] Analyzing liba.so...\n[⚠] RELRO: partial\n[✓] NX: enabled", "narrative")
    stats = calculate_vulnerability_stats(report)
    assert stats["native_libraries"] == 1
    assert stats["native_issues"] == 2
    assert stats["total_vulnerabilities"] == 0


def test_group_findings_of_empty_report():
    assert group_findings(parse("", "narrative")) == {"by_severity": {}, "by_type": {}}
