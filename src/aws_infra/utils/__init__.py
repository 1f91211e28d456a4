# utils/__init__.py

from .config import ConfigManager
from .exceptions import APIError, AWSInfraError, CLIError, OperationError, ValidationRules
from .logger import setup_logger, set_console_level
from .retry import is_error_retryable, with_retry
from .session import SessionManager, assume_role

__all__ = [
    "ConfigManager",
    "APIError",
    "AWSInfraError",
    "CLIError",
    "OperationError",
    "ValidationRules",
    "setup_logger",
    "set_console_level",
    "is_error_retryable",
    "with_retry",
    "SessionManager",
    "assume_role",
]
