"""
Centralized configuration for apidelta.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (APIDELTA_*)
3. .env file
4. Default values

Example:
    from apidelta.config import get_config

    config = get_config()
    policy = config.risk_policy()

    # Override at runtime
    config = get_config(risk_breaking_weight=30)
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from apidelta.risk import RiskPolicy


class ApiDeltaConfig(BaseSettings):
    """
    Central configuration for apidelta.

    All settings can be overridden via environment variables
    prefixed with APIDELTA_.

    Example:
        export APIDELTA_LOG_LEVEL=debug
        export APIDELTA_RISK_BREAKING_WEIGHT=30
    """

    model_config = SettingsConfigDict(
        env_prefix="APIDELTA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service identification
    service_name: str = Field(
        default="apidelta",
        description="Service name for log and telemetry attribution",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for the apidelta package logger",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Changelog event format (json for log aggregation, text for console)",
    )
    structured_logs: bool = Field(
        default=False,
        description="Emit a JSON event per generated changelog and breaking change",
    )

    # Telemetry
    emit_span_events: bool = Field(
        default=True,
        description="Add changelog events to the current OTel span",
    )

    # Risk scoring
    risk_breaking_weight: int = Field(default=25, ge=0)
    risk_dangerous_weight: int = Field(default=10, ge=0)
    risk_warning_weight: int = Field(default=3, ge=0)
    risk_critical_threshold: int = Field(default=75, ge=1, le=100)
    risk_high_threshold: int = Field(default=40, ge=1, le=100)
    risk_moderate_threshold: int = Field(default=15, ge=1, le=100)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Accept DEBUG / Info / etc."""
        return v.lower() if isinstance(v, str) else v

    def risk_policy(self) -> RiskPolicy:
        """Build the ``RiskPolicy`` described by the risk_* settings.

        Raises:
            pydantic.ValidationError: If the weights or thresholds are not
                strictly decreasing.
        """
        return RiskPolicy(
            breaking_weight=self.risk_breaking_weight,
            dangerous_weight=self.risk_dangerous_weight,
            warning_weight=self.risk_warning_weight,
            critical_threshold=self.risk_critical_threshold,
            high_threshold=self.risk_high_threshold,
            moderate_threshold=self.risk_moderate_threshold,
        )

    def apply_log_level(self) -> None:
        """Set the ``apidelta`` package logger to ``log_level``."""
        logging.getLogger("apidelta").setLevel(self.log_level.upper())


# Global singleton
_config: Optional[ApiDeltaConfig] = None


def get_config(**overrides) -> ApiDeltaConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.

    Args:
        **overrides: Override any config values

    Returns:
        ApiDeltaConfig instance
    """
    global _config

    if overrides or _config is None:
        _config = ApiDeltaConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
