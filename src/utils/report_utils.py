from collections import OrderedDict

from parsers.models import SEVERITY_ORDER


def calculate_vulnerability_stats(report):
    """
    Count findings of a parsed report by severity (critical, high, medium, low, info).
    Severities outside that vocabulary are counted under "unknown".
    """
    severity_counts = {severity: 0 for severity in SEVERITY_ORDER}
    severity_counts["unknown"] = 0

    for finding in report.vulnerabilities:
        severity = (finding.severity or "").lower()
        if severity in severity_counts:
            severity_counts[severity] += 1
        else:
            severity_counts["unknown"] += 1

    return {
        "severity_counts": severity_counts,
        "total_vulnerabilities": len(report.vulnerabilities),
        "native_libraries": len(report.native_reports),
        "native_issues": sum(len(r.issues) for r in report.native_reports),
    }


def group_by_severity(findings):
    """Group findings by severity, most severe first; unrecognised severities follow in first-seen order."""
    groups = OrderedDict((severity, []) for severity in SEVERITY_ORDER)
    for finding in findings:
        groups.setdefault(finding.severity, []).append(finding)
    return OrderedDict((severity, items) for severity, items in groups.items() if items)


def group_by_type(findings):
    groups = OrderedDict()
    for finding in findings:
        groups.setdefault(finding.type, []).append(finding)
    return groups


def group_findings(report):
    return {
        "by_severity": group_by_severity(report.vulnerabilities),
        "by_type": group_by_type(report.vulnerabilities),
    }
