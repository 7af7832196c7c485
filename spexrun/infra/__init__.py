"""Subject-under-test infrastructure: lifecycle, readiness, port handling."""

from spexrun.infra.base import ExternalSubject, SubjectLifecycle, SubjectManager
from spexrun.infra.docker import (
    DockerComposeError,
    DockerComposeSubject,
    DockerError,
    DockerNotFoundError,
)
from spexrun.infra.ports import find_port_owners, preempt_port
from spexrun.infra.process import ProcessSubject
from spexrun.infra.readiness import ReadinessProber, can_connect

__all__ = [
    # Lifecycle
    "SubjectManager",
    "SubjectLifecycle",
    "ExternalSubject",
    "ProcessSubject",
    # Docker
    "DockerComposeSubject",
    "DockerError",
    "DockerNotFoundError",
    "DockerComposeError",
    # Readiness and ports
    "ReadinessProber",
    "can_connect",
    "find_port_owners",
    "preempt_port",
]
