"""Processor interface for the resource lookup and its dependency health checks."""

import inspect
import logging
import random
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, List

from .errors import ServiceUnavailableError
from .models import ServiceResponse

logger = logging.getLogger(__name__)

DependencyCheck = Callable[[], Awaitable[bool] | bool]


class FaultInjector:
    """
    Randomly fail a fraction of requests.

    Args:
        rate: Probability in [0, 1] that should_fail() returns True
        rng: Optional random source, mostly for tests
    """

    def __init__(self, rate: float = 0.0, rng: random.Random | None = None):
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"Fault rate must be between 0 and 1, got {rate}")
        self.rate = rate
        self._rng = rng or random.Random()

    def should_fail(self) -> bool:
        if self.rate <= 0.0:
            return False
        if self.rate >= 1.0:
            return True
        return self._rng.random() < self.rate


class BaseProcessor(ABC):
    """Hook point for the service's resource lookup."""

    def __init__(self):
        self._dependency_checks: Dict[str, DependencyCheck] = {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Processor/service name used for logging and metadata."""

    @property
    def version(self) -> str:
        """Optional semantic version string."""
        return "1.0.0"

    @abstractmethod
    def perform_request(self, resource_id: str) -> Awaitable[ServiceResponse] | ServiceResponse:
        """
        Look up a resource.

        Raises:
            ServiceUnavailableError: If the request cannot be served right now
        """

    def add_dependency_check(self, name: str, check: DependencyCheck) -> None:
        """
        Register a downstream dependency health check.

        Args:
            name: Dependency name reported when the check fails
            check: Sync or async callable returning a truthy value when healthy
        """
        self._dependency_checks[name] = check

    async def check_dependencies(self) -> List[str]:
        """Run every registered check and return the names of the failing ones."""
        failing = []
        for name, check in self._dependency_checks.items():
            try:
                healthy = check()
                if inspect.isawaitable(healthy):
                    healthy = await healthy
            except Exception:
                logger.exception("Dependency check '%s' raised", name)
                healthy = False
            if not healthy:
                failing.append(name)
        return failing


class EchoProcessor(BaseProcessor):
    """Stub lookup that echoes the requested id with a fixed message."""

    def __init__(
        self,
        message: str = "Service running!",
        fault_injector: FaultInjector | None = None,
        name: str = "orchestrated-service",
    ):
        super().__init__()
        self.message = message
        self.fault_injector = fault_injector or FaultInjector()
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def perform_request(self, resource_id: str) -> ServiceResponse:
        failing = await self.check_dependencies()
        if failing:
            raise ServiceUnavailableError(
                f"Dependencies unavailable: {', '.join(failing)}"
            )
        if self.fault_injector.should_fail():
            raise ServiceUnavailableError(
                f"The service could not complete the request for resource '{resource_id}'."
            )
        return ServiceResponse.ok(resource_id, self.message)
