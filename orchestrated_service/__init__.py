"""Resource lookup service with orchestration probes and graceful shutdown."""

from .api import create_app, ServiceConfig
from .config import LogLevel, Settings
from .errors import LifecycleError, ServiceUnavailableError, StartupError
from .lifecycle import LifecycleCoordinator, LifecycleState
from .models import ProblemDetail, ServiceResponse
from .processor import BaseProcessor, EchoProcessor, FaultInjector

__version__ = "1.0.0"


__all__ = [
    "create_app",
    "ServiceConfig",
    "Settings",
    "LogLevel",
    "LifecycleError",
    "ServiceUnavailableError",
    "StartupError",
    "LifecycleCoordinator",
    "LifecycleState",
    "ProblemDetail",
    "ServiceResponse",
    "BaseProcessor",
    "EchoProcessor",
    "FaultInjector",
]
