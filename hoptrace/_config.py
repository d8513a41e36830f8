"""Run configuration."""

from __future__ import annotations

from dataclasses import dataclass

from ._exceptions import ConfigurationError


@dataclass
class MtrConfig:
    target: str
    max_hops: int = 30
    rounds: int = 0
    interval: float = 1.0
    timeout_ms: float = 1000.0
    resolve_dns: bool = True
    report: bool = False

    @property
    def bounded(self) -> bool:
        return self.rounds > 0

    @property
    def timeout(self) -> float:
        """Per-probe timeout in seconds."""
        return self.timeout_ms / 1000

    def validate(self) -> None:
        if not self.target:
            raise ConfigurationError("a target is required")
        if self.max_hops < 1:
            raise ConfigurationError(f"max hops must be at least 1, got {self.max_hops}")
        if self.rounds < 0:
            raise ConfigurationError(f"round count cannot be negative, got {self.rounds}")
        if self.interval < 0:
            raise ConfigurationError(f"interval cannot be negative, got {self.interval}")
        if self.timeout_ms <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout_ms}")
        if self.report and not self.bounded:
            raise ConfigurationError("report mode requires a bounded round count")
