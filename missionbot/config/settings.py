"""Runtime configuration for missionbot.

Values come from the environment when Settings is built, not at import, so
a malformed variable surfaces as a validation error the CLI can report.
"""

import os
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Query parameters sent with every list call
MISSIONS_PER_PAGE = 20
TARGETS_PER_PAGE = 15


def env(name: str, default: Optional[str] = None) -> Callable[[], Optional[str]]:
    """Default factory reading one variable; empty counts as unset."""
    return lambda: os.environ.get(name) or default


class Settings(BaseModel):
    """Collected settings passed into the client and pollers."""

    # Raw env strings are coerced and checked like explicit arguments
    model_config = ConfigDict(validate_default=True)

    base_url: str = Field(default_factory=env("SYNACK_BASE_URL", "https://platform.synack.com"))

    # Loop timing (seconds)
    mission_interval: float = Field(default_factory=env("MISSIONBOT_MISSION_INTERVAL", "30"))
    target_interval: float = Field(default_factory=env("MISSIONBOT_TARGET_INTERVAL", "300"))
    claim_pacing: float = Field(default_factory=env("MISSIONBOT_CLAIM_PACING", "5"))
    rate_limit_fallback: float = Field(default_factory=env("MISSIONBOT_RATE_LIMIT_FALLBACK", "30"))

    # Consecutive 403s on claim before the mission poller gives up
    forbidden_threshold: int = Field(default_factory=env("MISSIONBOT_FORBIDDEN_THRESHOLD", "5"))

    # HTTP
    http_timeout: float = Field(default_factory=env("MISSIONBOT_HTTP_TIMEOUT", "15"))
    proxy: Optional[str] = Field(default_factory=env("MISSIONBOT_PROXY"))
    verify_tls: bool = Field(default_factory=env("MISSIONBOT_VERIFY_TLS", "true"))

    log_file: Optional[str] = Field(default_factory=env("MISSIONBOT_LOG_FILE"))

    @model_validator(mode="after")
    def check_ordering(self) -> "Settings":
        if not (0 < self.claim_pacing < self.mission_interval < self.target_interval):
            raise ValueError(
                "expected 0 < claim_pacing < mission_interval < target_interval, got "
                f"{self.claim_pacing} / {self.mission_interval} / {self.target_interval}"
            )
        if self.forbidden_threshold < 1:
            raise ValueError("forbidden_threshold must be at least 1")
        if self.rate_limit_fallback < 0:
            raise ValueError("rate_limit_fallback must not be negative")
        if self.http_timeout <= 0:
            raise ValueError("http_timeout must be positive")
        return self

    @classmethod
    def from_env(cls, proxy: Optional[str] = None, insecure: bool = False) -> "Settings":
        """Build settings from the environment, with CLI overrides applied."""
        overrides = {}
        if proxy:
            overrides["proxy"] = proxy
        if insecure:
            overrides["verify_tls"] = False
        return cls(**overrides)
