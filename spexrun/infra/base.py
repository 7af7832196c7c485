"""Subject-under-test lifecycle: manager interface and guaranteed-teardown scope."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from spexrun.errors import SpexError, SubjectStartError
from spexrun.infra.readiness import ReadinessProber

logger = logging.getLogger(__name__)


class SubjectManager(ABC):
    """Starts and stops the process the specifications exercise."""

    def __init__(self) -> None:
        self._running = False

    @abstractmethod
    def start(self) -> None:
        """Launch (or ensure-start) the subject.

        Raises:
            SubjectStartError: If the subject cannot be started.
        """
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop the subject. Must tolerate a subject that never fully started."""
        ...

    def is_running(self) -> bool:
        return self._running

    def describe(self) -> str:
        return type(self).__name__


class ExternalSubject(SubjectManager):
    """A subject started and stopped by someone else; only readiness is checked."""

    def start(self) -> None:
        logger.info("Subject is managed externally; not starting it")
        self._running = True

    def stop(self) -> None:
        self._running = False

    def describe(self) -> str:
        return "external subject"


class SubjectLifecycle:
    """Start, confirm readiness, and guarantee exactly one stop.

    Callers that track each phase (the run orchestrator records a state per
    phase) drive ``start()``, ``wait_ready()`` and ``stop()`` themselves and
    call ``stop()`` from a ``finally`` block. Callers that only need the
    subject up for a block use ``running()``:

        with lifecycle.running():
            ...  # run specifications

    Either way the subject is stopped at most once, including after a failed
    readiness probe or an operator abort. ``stop_count`` records how often
    teardown ran.
    """

    def __init__(
        self,
        manager: SubjectManager,
        prober: ReadinessProber,
        preempt: Callable[[int], object] | None = None,
    ) -> None:
        self.manager = manager
        self.prober = prober
        self.preempt = preempt
        self.stop_count = 0
        self._started = False
        self._stopped = False

    def start(self) -> None:
        """Preempt the port (best effort), then start the subject."""
        if self.preempt is not None:
            try:
                self.preempt(self.prober.port)
            except Exception as e:
                logger.warning(f"Port preemption on {self.prober.port} failed: {e}")

        logger.info(f"Starting {self.manager.describe()}")
        self._started = True
        try:
            self.manager.start()
        except SpexError:
            raise
        except Exception as e:
            raise SubjectStartError(
                message=f"Failed to start {self.manager.describe()}: {e}",
                cause=e,
            ) from e

    def wait_ready(self) -> int:
        return self.prober.wait()

    def stop(self) -> None:
        """Stop the subject once; later calls are no-ops."""
        if self._stopped:
            return
        self._stopped = True
        self.stop_count += 1
        if not self._started:
            return
        logger.info(f"Stopping {self.manager.describe()}")
        try:
            self.manager.stop()
        except Exception:
            logger.exception(f"Failed to stop {self.manager.describe()}")

    @contextmanager
    def running(self) -> Iterator[SubjectLifecycle]:
        try:
            self.start()
            self.wait_ready()
            yield self
        finally:
            self.stop()
