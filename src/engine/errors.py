# src/engine/errors.py
"""
Error taxonomy for analysis jobs. Each error carries the HTTP status it maps to.
"""


class AnalysisError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AnalysisError):
    """Bad upload: missing file, wrong extension or oversize."""
    status_code = 400


class ExecutionError(AnalysisError):
    """Container run failed for a reason other than a tolerated output overflow."""
    status_code = 500


class ResultMissingError(AnalysisError):
    """The run finished but no result file exists at the expected path."""
    status_code = 500
