# src/tools/base.py
from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class ContainerRun:
    """Outcome of one container execution."""

    def __init__(self, exit_code: Optional[int], output: bytes = b"", overflowed: bool = False,
                 timed_out: bool = False, error: Optional[str] = None):
        self.exit_code = exit_code
        self.output = output
        self.overflowed = overflowed
        self.timed_out = timed_out
        self.error = error

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.overflowed and not self.timed_out and self.error is None


class ContainerRunner(ABC):
    @abstractmethod
    def run(self, image: str, volumes: Dict[str, str], command: List[str]) -> ContainerRun:
        """
        Run `image` with host paths in `volumes` bound read/write at their container
        paths, block until it exits and return the captured combined output.
        """
        pass
