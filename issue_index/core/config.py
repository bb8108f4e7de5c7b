"""
Configuration Management for the Issue Index

Provides validated configuration with sensible defaults.
Supports environment variable overrides (prefix ISSUE_INDEX_).

Design:
- Immutable after construction
- Fail-fast on invalid configuration
- Type-safe with dataclasses
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from issue_index.core import constants as C
from issue_index.core.errors import ConfigError, Err, Ok, Result
from issue_index.core.types import DEFAULT_ACTIONABLE_STATUSES, IssueStatus


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class IndexConfig:
    """
    Index facade configuration.

    Parameters:
        staleness_seconds: Maximum snapshot age before a read rebuilds
        actionable_statuses: Statuses eligible for the urgency heap
        default_top_count: Size of get_top_urgent() when no count is given
    """
    staleness_seconds: float = C.STALENESS_THRESHOLD_S
    actionable_statuses: tuple[IssueStatus, ...] = DEFAULT_ACTIONABLE_STATUSES
    default_top_count: int = C.DEFAULT_TOP_URGENT

    def validate(self) -> Optional[str]:
        if self.staleness_seconds < 0:
            return f"staleness_seconds must be >= 0, got {self.staleness_seconds}"
        if not self.actionable_statuses:
            return "actionable_statuses must not be empty"
        if any(not isinstance(s, IssueStatus) for s in self.actionable_statuses):
            return f"actionable_statuses must contain IssueStatus members, got {self.actionable_statuses!r}"
        if self.default_top_count < 1:
            return f"default_top_count must be >= 1, got {self.default_top_count}"
        return None


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging output configuration."""
    level: str = "INFO"
    json: bool = True

    def validate(self) -> Optional[str]:
        if self.level.upper() not in _LOG_LEVELS:
            return f"level must be one of {_LOG_LEVELS}, got {self.level!r}"
        return None


@dataclass(frozen=True, slots=True)
class IssueIndexConfig:
    """Root configuration."""
    index: IndexConfig = field(default_factory=IndexConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> Result[IssueIndexConfig, ConfigError]:
        """
        Load configuration from environment variables.

        Variables:
            ISSUE_INDEX_STALENESS_SECONDS   float, default 300
            ISSUE_INDEX_ACTIONABLE_STATUSES comma list, default "Pending,Assigned"
            ISSUE_INDEX_TOP_COUNT           int, default 5
            ISSUE_INDEX_LOG_LEVEL           default INFO
            ISSUE_INDEX_LOG_JSON            "1"/"true" for JSON lines, default true
        """
        env = f"{C.ENV_PREFIX}STALENESS_SECONDS"
        try:
            staleness = float(os.getenv(env, str(C.STALENESS_THRESHOLD_S)))

            env = f"{C.ENV_PREFIX}ACTIONABLE_STATUSES"
            raw_statuses = os.getenv(env)
            statuses = (
                tuple(IssueStatus.parse(s) for s in raw_statuses.split(",") if s.strip())
                if raw_statuses is not None
                else DEFAULT_ACTIONABLE_STATUSES
            )

            env = f"{C.ENV_PREFIX}TOP_COUNT"
            top_count = int(os.getenv(env, str(C.DEFAULT_TOP_URGENT)))
        except (ValueError, TypeError) as e:
            return Err(ConfigError.invalid(env, os.getenv(env), str(e)))

        log_json = os.getenv(f"{C.ENV_PREFIX}LOG_JSON", "true").strip().lower() in ("1", "true", "yes")

        config = cls(
            index=IndexConfig(
                staleness_seconds=staleness,
                actionable_statuses=statuses,
                default_top_count=top_count,
            ),
            logging=LoggingConfig(
                level=os.getenv(f"{C.ENV_PREFIX}LOG_LEVEL", "INFO").upper(),
                json=log_json,
            ),
        )
        return config.validate().map(lambda _: config)

    def validate(self) -> Result[None, ConfigError]:
        """Validate configuration invariants."""
        if error := self.index.validate():
            return Err(ConfigError.invalid("index", self.index, error))
        if error := self.logging.validate():
            return Err(ConfigError.invalid("logging", self.logging, error))
        return Ok(None)
