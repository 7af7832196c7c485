"""Tests for TCP readiness probing."""

from __future__ import annotations

import socket

import pytest

from spexrun.errors import ReadinessError
from spexrun.infra.readiness import ReadinessProber, can_connect


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestReadinessProber:
    """Tests for ReadinessProber."""

    def test_closed_port_exhausts_budget(self) -> None:
        port = free_port()
        prober = ReadinessProber("127.0.0.1", port, interval_ms=10, max_attempts=3)

        with pytest.raises(ReadinessError) as exc_info:
            prober.wait()

        error = exc_info.value
        assert prober.attempts == 3
        assert error.attempts == 3
        assert error.port == port
        assert f"127.0.0.1:{port}" in str(error)
        assert "3 attempt(s) at 10ms intervals" in str(error)

    def test_listener_appears_after_k_attempts(self, connect_factory) -> None:
        sleeps: list[float] = []
        prober = ReadinessProber(
            "localhost",
            9999,
            interval_ms=10,
            max_attempts=5,
            connect=connect_factory(2),
            sleep=sleeps.append,
        )

        assert prober.wait() == 3
        assert sleeps == [0.01, 0.01]

    def test_no_sleep_after_last_attempt(self, connect_factory) -> None:
        sleeps: list[float] = []
        prober = ReadinessProber(
            "localhost",
            9999,
            interval_ms=10,
            max_attempts=3,
            connect=connect_factory(10),
            sleep=sleeps.append,
        )

        with pytest.raises(ReadinessError):
            prober.wait()
        assert len(sleeps) == 2

    def test_real_listener(self) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
            server.bind(("127.0.0.1", 0))
            server.listen(1)
            port = server.getsockname()[1]

            prober = ReadinessProber("127.0.0.1", port, interval_ms=10, max_attempts=3)

            assert prober.wait() == 1
            assert can_connect("127.0.0.1", port)

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            ReadinessProber("localhost", 9999, max_attempts=0)
