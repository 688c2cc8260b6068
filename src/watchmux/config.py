"""Configuration for the watch supervisor."""

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class SupervisorConfig:
    """
    Configuration options for the watch supervisor.

    Attributes:
        debounce_ms: Milliseconds to coalesce events on the same path
        flush_interval_ms: Interval for releasing debounced events
        ignore_patterns: Glob patterns for paths that never produce events
        log_level: Logging level name for the process logger
        log_file: Optional file receiving a copy of the log output
    """
    debounce_ms: int = 300
    flush_interval_ms: int = 50
    ignore_patterns: List[str] = field(default_factory=list)
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    def __post_init__(self):
        if self.debounce_ms < 0:
            raise ValueError(f"debounce_ms must not be negative: {self.debounce_ms}")
        if self.flush_interval_ms <= 0:
            raise ValueError(f"flush_interval_ms must be positive: {self.flush_interval_ms}")

    def should_ignore(self, path: Path) -> bool:
        """
        Check if a path should be ignored based on ignore patterns.

        Args:
            path: Path to check

        Returns:
            True if the path should be ignored
        """
        path_str = str(path)
        name = path.name

        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(name, pattern):
                return True
            if fnmatch.fnmatch(path_str, f"*/{pattern}"):
                return True
            if fnmatch.fnmatch(path_str, pattern):
                return True

        return False
