from assignment_engine.orchestration.orchestrator import (
    EnrichmentNotice,
    FetchOrchestrator,
    NoticeKind,
    ResolutionCycle,
    ResolutionSnapshot,
    ResolutionStatus,
)
from assignment_engine.orchestration.state_machine import (
    InvalidTransitionError,
    ResolutionState,
    ResolutionStateMachine,
    ResolutionTrigger,
)

__all__ = [
    "EnrichmentNotice",
    "FetchOrchestrator",
    "NoticeKind",
    "ResolutionCycle",
    "ResolutionSnapshot",
    "ResolutionStatus",
    "InvalidTransitionError",
    "ResolutionState",
    "ResolutionStateMachine",
    "ResolutionTrigger",
]
