"""
Data models for the restarter.

SupervisionConfig is the validated, immutable description of what to run and
how to check it. It is built by the CLI (or directly by library callers) and
handed to the Supervisor.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class HealthCheckKind(Enum):
    NONE = "none"
    HTTP = "http"
    COMMAND = "command"


class SupervisorState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PROBING = "probing"
    RESTARTING = "restarting"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass(frozen=True)
class SupervisionConfig:
    """What to supervise and how to decide it is healthy."""

    command: tuple[str, ...]
    health_check_url: Optional[str] = None
    health_check_command: Optional[tuple[str, ...]] = None
    expected_status_codes: Optional[frozenset[int]] = None
    check_interval: int = 5000  # ms
    max_retries: int = -1  # -1 = unlimited

    def __post_init__(self):
        """Normalize sequences and validate the combination of fields."""
        # Frozen dataclass, so normalize through object.__setattr__
        object.__setattr__(self, "command", tuple(self.command))
        if self.health_check_command is not None:
            object.__setattr__(self, "health_check_command", tuple(self.health_check_command))
        if self.expected_status_codes is not None:
            object.__setattr__(self, "expected_status_codes", frozenset(self.expected_status_codes))

        if not self.command:
            raise ValueError("command must not be empty")
        if self.health_check_url and self.health_check_command is not None:
            raise ValueError("health_check_url and health_check_command are mutually exclusive")
        if self.health_check_command is not None and not self.health_check_command:
            raise ValueError("health_check_command must not be empty")
        if self.check_interval <= 0:
            raise ValueError("check_interval must be positive")
        if self.max_retries < -1:
            raise ValueError("max_retries must be -1 (unlimited) or non-negative")
        if self.expected_status_codes is not None:
            invalid = sorted(c for c in self.expected_status_codes if not 100 <= c <= 599)
            if invalid:
                raise ValueError(f"invalid HTTP status codes: {invalid}")

    @property
    def health_check_kind(self) -> HealthCheckKind:
        if self.health_check_url:
            return HealthCheckKind.HTTP
        if self.health_check_command:
            return HealthCheckKind.COMMAND
        return HealthCheckKind.NONE

    @property
    def unlimited_retries(self) -> bool:
        return self.max_retries == -1

    @property
    def check_interval_seconds(self) -> float:
        return self.check_interval / 1000
