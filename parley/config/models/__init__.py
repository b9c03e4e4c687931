"""Configuration model exports.

    from parley.config.models import ServiceConfig, SessionConfig
"""

from parley.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from parley.config.models.service import ServiceConfig
from parley.config.models.session import SessionConfig

__all__ = [
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "ServiceConfig",
    "SessionConfig",
]
