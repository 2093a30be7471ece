"""Tests for the service entrypoint."""

import socket

from orchestrated_service.main import main


def test_main_returns_error_when_port_is_taken():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as occupied:
        occupied.bind(("127.0.0.1", 0))
        occupied.listen()
        port = occupied.getsockname()[1]

        assert main(["--host", "127.0.0.1", "--port", str(port)]) == 1


def test_main_returns_error_on_invalid_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "verbose")

    assert main([]) == 2
