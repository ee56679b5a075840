"""Runtime detector: picks the container engine for this invocation.

Detection flow:
1. Walk the configured candidates in priority order.
2. For each, check the binary is present (`<bin> --version`).
3. Then check the daemon answers (`<bin> info`).
4. The first candidate passing both checks is selected; later candidates
   are never probed.

When nothing qualifies, NoRuntimeAvailableError carries every attempted
status. If an engine is installed but its daemon is down, the remediation
points at starting that engine rather than installing one.
"""

import logging

from droidpack.errors import NoRuntimeAvailableError
from droidpack.executor.types import ProcessExecutor
from droidpack.runtime.types import ContainerRuntime, RuntimeCandidate, RuntimeStatus

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 15


def probe_runtime(
    candidate: RuntimeCandidate,
    executor: ProcessExecutor,
    timeout: int = DEFAULT_PROBE_TIMEOUT,
) -> RuntimeStatus:
    """Probe one candidate for binary presence and daemon liveness.

    The daemon is only queried when the binary responded.
    """
    version = executor.run(candidate.version_command(), timeout=timeout)
    if not version.is_success:
        logger.debug("%s not installed (exit=%d)", candidate.name, version.exit_code)
        return RuntimeStatus(candidate=candidate, installed=False, daemon_live=False)

    info = executor.run(candidate.info_command(), timeout=timeout)
    status = RuntimeStatus(
        candidate=candidate,
        installed=True,
        daemon_live=info.is_success,
        version_output=version.stdout,
        info_output=info.stderr if not info.is_success else "",
    )
    logger.debug("%s probe: %s", candidate.name, status.diagnostic)
    return status


def select_runtime(
    candidates: list[RuntimeCandidate],
    executor: ProcessExecutor,
    timeout: int = DEFAULT_PROBE_TIMEOUT,
) -> ContainerRuntime:
    """Return the first candidate that is installed with a live daemon.

    Raises NoRuntimeAvailableError listing each attempted candidate's status.
    """
    attempted: list[RuntimeStatus] = []
    for candidate in candidates:
        status = probe_runtime(candidate, executor, timeout=timeout)
        attempted.append(status)
        if status.is_ready:
            runtime = ContainerRuntime.from_status(status)
            logger.info("Selected container runtime: %s", runtime.name)
            return runtime

    raise NoRuntimeAvailableError(attempted, remediation=_remediation_for(attempted, candidates))


def detect_runtimes(
    candidates: list[RuntimeCandidate],
    executor: ProcessExecutor,
    timeout: int = DEFAULT_PROBE_TIMEOUT,
) -> list[RuntimeStatus]:
    """Probe every candidate without short-circuiting."""
    return [probe_runtime(c, executor, timeout=timeout) for c in candidates]


def _remediation_for(
    attempted: list[RuntimeStatus],
    candidates: list[RuntimeCandidate],
) -> str:
    stopped = [s.name for s in attempted if s.installed and not s.daemon_live]
    if stopped:
        return (
            f"{', '.join(stopped)} is installed but its daemon is not running. "
            f"Start it (e.g. `systemctl start {stopped[0]}` or `{stopped[0]} machine start`) and retry."
        )
    names = " or ".join(c.name for c in candidates) or "a container engine"
    return f"Install {names} and make sure it is on PATH."
