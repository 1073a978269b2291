"""Error types raised by the evaluator, simulator and worker."""

from __future__ import annotations


class InvalidInput(ValueError):
    """A request or card set that cannot be evaluated (rejected before any work)."""


class ExhaustedDeck(InvalidInput):
    """More cards would be dealt than the 52-card deck holds."""


class ComputationFailure(RuntimeError):
    """An unexpected fault while a simulation was running."""


class SimulationCancelled(Exception):
    """Raised inside a run whose cancellation token was set.

    Only the worker sees this; it is never reported to callers.
    """
