"""Core infrastructure module.

Provides foundational components:
- Configuration management with validation
- Custom exception hierarchy
- Structured logging
- Retry logic with exponential backoff
"""

from .config import (
    BoardConfig,
    Config,
    DeployConfig,
    LoggingConfig,
    MessageConfig,
    ScheduleConfig,
    SheetConfig,
    load_config,
)
from .errors import (
    FundraiserBoardError,
    ConfigurationError,
    DataNotFoundError,
    APIError,
    ServiceError,
    TransientServiceError,
    PermanentServiceError,
    LayoutError,
    UpdateCycleError,
    DeploymentError,
)
from .logging import setup_logging, get_logger
from .retry import (
    NETWORK_RETRY_CONFIG,
    PUBLISH_RETRY_CONFIG,
    RetryConfig,
    async_retry,
    call_with_retry,
)

__all__ = [
    # Config
    "BoardConfig",
    "Config",
    "DeployConfig",
    "LoggingConfig",
    "MessageConfig",
    "ScheduleConfig",
    "SheetConfig",
    "load_config",
    # Errors
    "FundraiserBoardError",
    "ConfigurationError",
    "DataNotFoundError",
    "APIError",
    "ServiceError",
    "TransientServiceError",
    "PermanentServiceError",
    "LayoutError",
    "UpdateCycleError",
    "DeploymentError",
    # Logging
    "setup_logging",
    "get_logger",
    # Retry
    "NETWORK_RETRY_CONFIG",
    "PUBLISH_RETRY_CONFIG",
    "RetryConfig",
    "async_retry",
    "call_with_retry",
]
