# src/parsers/dialects.py
"""
Dialect registry: maps dialect names to LogDialect implementations.
"""
from typing import Dict, Union

from .base import LogDialect
from .models import ParsedReport
from .narrative import NarrativeDialect
from .tagged import TaggedLineDialect

DIALECTS: Dict[str, LogDialect] = {}


def register_dialect(dialect: LogDialect) -> LogDialect:
    if not dialect.name:
        raise ValueError("Dialect must define a name")
    DIALECTS[dialect.name] = dialect
    return dialect


def get_dialect(name: str) -> LogDialect:
    try:
        return DIALECTS[name]
    except KeyError:
        raise KeyError(f"Unknown log dialect: {name}") from None


def dialect_for_tool(registry, tool_id: str) -> LogDialect:
    return get_dialect(registry.get(tool_id).dialect)


def parse(raw_text: str, dialect: Union[str, LogDialect]) -> ParsedReport:
    if isinstance(dialect, str):
        dialect = get_dialect(dialect)
    return dialect.parse(raw_text)


register_dialect(TaggedLineDialect())
register_dialect(NarrativeDialect())
