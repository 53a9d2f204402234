# src/parsers/base.py
from abc import ABC, abstractmethod

from .models import ParsedReport


class LogDialect(ABC):
    """A scanner-specific output grammar. Implementations must never raise on malformed text."""

    name: str = ""

    @abstractmethod
    def parse(self, raw_text: str) -> ParsedReport:
        pass
