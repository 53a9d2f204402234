# src/parsers/severity.py
"""
Keyword-based severity for scanners whose output carries no explicit severity.
"""

# Checked in order; the first tier with a matching keyword wins.
SEVERITY_KEYWORDS = (
    ('critical', ('private key', 'password', 'token', 'sql injection')),
    ('high', ('hardcoded', 'insecure', 'weak')),
    ('medium', ('debug', 'obfuscated')),
    ('low', ('http url',)),
)
DEFAULT_SEVERITY = 'medium'


def infer_severity(vulnerability_type: str) -> str:
    lowered = vulnerability_type.lower()
    for severity, keywords in SEVERITY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return severity
    return DEFAULT_SEVERITY
