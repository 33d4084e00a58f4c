"""
Finite state machine for one resolution cycle.

Each cycle moves Idle -> Fetching -> {Enriching, FellBack} -> Settled,
and can be absorbed into Superseded from any non-terminal state when a
newer cycle replaces it.

Usage:
    sm = ResolutionStateMachine()
    sm.transition(ResolutionTrigger.CYCLE_STARTED)
    assert sm.current_state == ResolutionState.FETCHING
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ResolutionState(str, Enum):
    """All possible states in a resolution cycle."""
    IDLE = "idle"
    FETCHING = "fetching"
    ENRICHING = "enriching"
    FELL_BACK = "fell_back"
    SETTLED = "settled"
    SUPERSEDED = "superseded"


class ResolutionTrigger(str, Enum):
    """Events that cause state transitions."""
    CYCLE_STARTED = "cycle_started"
    NOTHING_TO_RESOLVE = "nothing_to_resolve"
    PRIMARY_SUCCEEDED = "primary_succeeded"
    PRIMARY_FAILED = "primary_failed"
    ENRICHMENT_COMPLETE = "enrichment_complete"
    FALLBACK_COMPLETE = "fallback_complete"
    SUPERSEDED = "superseded"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: ResolutionState
    to_state: ResolutionState
    trigger: ResolutionTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: ResolutionState
    entered_at: datetime
    trigger: Optional[ResolutionTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


TERMINAL_STATES = frozenset({ResolutionState.SETTLED, ResolutionState.SUPERSEDED})


class ResolutionStateMachine:
    """Deterministic lifecycle of a single resolution cycle."""

    TRANSITIONS: list[Transition] = [
        # --- Start ---
        Transition(ResolutionState.IDLE, ResolutionState.FETCHING,
                   ResolutionTrigger.CYCLE_STARTED),
        Transition(ResolutionState.IDLE, ResolutionState.SETTLED,
                   ResolutionTrigger.NOTHING_TO_RESOLVE),

        # --- Primary lookup ---
        Transition(ResolutionState.FETCHING, ResolutionState.ENRICHING,
                   ResolutionTrigger.PRIMARY_SUCCEEDED),
        Transition(ResolutionState.FETCHING, ResolutionState.FELL_BACK,
                   ResolutionTrigger.PRIMARY_FAILED),

        # --- Completion ---
        Transition(ResolutionState.ENRICHING, ResolutionState.SETTLED,
                   ResolutionTrigger.ENRICHMENT_COMPLETE),
        Transition(ResolutionState.FELL_BACK, ResolutionState.SETTLED,
                   ResolutionTrigger.FALLBACK_COMPLETE),

        # --- Superseded by a newer cycle ---
        Transition(ResolutionState.IDLE, ResolutionState.SUPERSEDED,
                   ResolutionTrigger.SUPERSEDED),
        Transition(ResolutionState.FETCHING, ResolutionState.SUPERSEDED,
                   ResolutionTrigger.SUPERSEDED),
        Transition(ResolutionState.ENRICHING, ResolutionState.SUPERSEDED,
                   ResolutionTrigger.SUPERSEDED),
        Transition(ResolutionState.FELL_BACK, ResolutionState.SUPERSEDED,
                   ResolutionTrigger.SUPERSEDED),
    ]

    def __init__(self) -> None:
        self._current_state = ResolutionState.IDLE
        self._history: list[StateEntry] = [
            StateEntry(state=ResolutionState.IDLE, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> ResolutionState:
        return self._current_state

    def transition(self, trigger: ResolutionTrigger) -> ResolutionState:
        """
        Execute a state transition.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state
                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))
                logger.debug(
                    "Cycle transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[ResolutionTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_state in TERMINAL_STATES
