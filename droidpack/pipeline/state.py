"""Pipeline state machine.

PENDING -> RUNTIME_SELECTED -> IMAGE_PULLED -> BUILT -> VALIDATED
        -> POSTPROCESSED | BUNDLED

FAILED is reachable from every non-terminal state. There is no way back to
an earlier state; recovery is a fresh invocation.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Optional

from droidpack.errors import FailureKind

logger = logging.getLogger(__name__)


class PipelineState(StrEnum):
    PENDING = "pending"
    RUNTIME_SELECTED = "runtime_selected"
    IMAGE_PULLED = "image_pulled"
    BUILT = "built"
    VALIDATED = "validated"
    POSTPROCESSED = "postprocessed"
    BUNDLED = "bundled"
    FAILED = "failed"


VALID_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    PipelineState.PENDING: {PipelineState.RUNTIME_SELECTED, PipelineState.VALIDATED, PipelineState.FAILED},
    PipelineState.RUNTIME_SELECTED: {PipelineState.IMAGE_PULLED, PipelineState.FAILED},
    PipelineState.IMAGE_PULLED: {PipelineState.BUILT, PipelineState.FAILED},
    PipelineState.BUILT: {PipelineState.VALIDATED, PipelineState.FAILED},
    PipelineState.VALIDATED: {PipelineState.POSTPROCESSED, PipelineState.BUNDLED, PipelineState.FAILED},
    PipelineState.POSTPROCESSED: {PipelineState.BUNDLED, PipelineState.FAILED},
}


def validate_transition(current: PipelineState, target: PipelineState) -> None:
    """Enforce the pipeline state machine.

    PENDING -> VALIDATED covers stages that start from an existing artifact
    (`fix-artifact`, `build-bundle --skip-build`).

    Raises ValueError if the transition is not allowed.
    """
    allowed = VALID_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise ValueError(
            f"Invalid pipeline state transition: {current} -> {target}. "
            f"Allowed transitions from '{current}': {sorted(allowed) or 'none (terminal state)'}"
        )


@dataclass
class PipelineRun:
    """Tracks one invocation's progress through the state machine."""

    state: PipelineState = PipelineState.PENDING
    history: list[tuple[PipelineState, str]] = field(default_factory=list)
    failure_kind: Optional[FailureKind] = None
    error: Optional[str] = None

    def advance(self, target: PipelineState) -> None:
        validate_transition(self.state, target)
        logger.debug("Pipeline %s -> %s", self.state, target)
        self.history.append((target, datetime.now(timezone.utc).isoformat()))
        self.state = target

    def fail(self, kind: FailureKind, error: str) -> None:
        self.advance(PipelineState.FAILED)
        self.failure_kind = kind
        self.error = error

    @property
    def is_terminal(self) -> bool:
        return self.state not in VALID_TRANSITIONS

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "failure_kind": self.failure_kind.value if self.failure_kind else None,
            "error": self.error,
            "history": [{"state": s.value, "at": at} for s, at in self.history],
        }
