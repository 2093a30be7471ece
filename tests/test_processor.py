"""Tests for the fault injector, dependency checks and echo processor."""

import asyncio

import pytest

from orchestrated_service import EchoProcessor, FaultInjector, ServiceUnavailableError


class FixedRandom:
    """Random source returning a fixed value."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


def test_fault_injector_bounds():
    assert FaultInjector(0.0).should_fail() is False
    assert FaultInjector(1.0).should_fail() is True


def test_fault_injector_uses_rng():
    assert FaultInjector(0.5, rng=FixedRandom(0.2)).should_fail() is True
    assert FaultInjector(0.5, rng=FixedRandom(0.7)).should_fail() is False


@pytest.mark.parametrize("rate", [-0.1, 1.5])
def test_fault_injector_rejects_invalid_rate(rate):
    with pytest.raises(ValueError):
        FaultInjector(rate)


def test_check_dependencies_reports_failing_names():
    async def slow_ok():
        return True

    def broken():
        raise ConnectionError("refused")

    processor = EchoProcessor()
    processor.add_dependency_check("queue", slow_ok)
    processor.add_dependency_check("database", lambda: False)
    processor.add_dependency_check("cache", broken)

    failing = asyncio.run(processor.check_dependencies())

    assert failing == ["database", "cache"]


def test_echo_processor_success():
    processor = EchoProcessor(message="hello")

    result = asyncio.run(processor.perform_request("7"))

    assert result.model_dump(by_alias=True) == {"ID": "7", "Message": "hello", "Status": "OK"}


def test_echo_processor_fault():
    processor = EchoProcessor(fault_injector=FaultInjector(1.0))

    with pytest.raises(ServiceUnavailableError) as exc_info:
        asyncio.run(processor.perform_request("7"))

    assert exc_info.value.status == 500
    assert "7" in exc_info.value.detail
