"""Best-effort preemption of a process already bound to the target port."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time

logger = logging.getLogger(__name__)


def find_port_owners(port: int) -> list[int]:
    """PIDs listening on ``port`` according to ``lsof``; empty if unknown."""
    try:
        result = subprocess.run(
            ["lsof", "-t", "-i", f":{port}", "-sTCP:LISTEN"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except FileNotFoundError:
        logger.debug("lsof not available; skipping port preemption")
        return []
    except subprocess.TimeoutExpired:
        logger.warning(f"lsof timed out while checking port {port}")
        return []

    pids: list[int] = []
    for line in result.stdout.split():
        if line.strip().isdigit():
            pid = int(line.strip())
            if pid != os.getpid() and pid not in pids:
                pids.append(pid)
    return pids


def preempt_port(port: int, settle_seconds: float = 1.0) -> list[int]:
    """Kill whatever listens on ``port`` so a re-run can bind it.

    Never raises: a failed kill is logged and the subsequent start will
    report the real problem.

    Returns:
        The PIDs that were signalled.
    """
    killed: list[int] = []
    for pid in find_port_owners(port):
        logger.info(f"Killing existing process {pid} on port {port}")
        try:
            os.kill(pid, signal.SIGKILL)
            killed.append(pid)
        except ProcessLookupError:
            logger.debug(f"Process {pid} already gone")
        except PermissionError as e:
            logger.warning(f"Not allowed to kill process {pid} on port {port}: {e}")

    if killed and settle_seconds > 0:
        time.sleep(settle_seconds)
    return killed
