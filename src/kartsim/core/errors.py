"""Exceptions raised by the race engine and the race service."""

from __future__ import annotations


class KartSimError(Exception):
    """Base class for recoverable, caller-facing failures."""


class ValidationError(KartSimError):
    """Bad input when building a race or loading a catalog."""


class NotFoundError(KartSimError):
    """No active race is registered under the given id."""

    def __init__(self, race_id: str) -> None:
        super().__init__(f"Race not found: {race_id}")
        self.race_id = race_id


class InvalidStateError(KartSimError):
    """A race lifecycle transition was requested from the wrong status."""


class SimulationCancelled(KartSimError):
    """A full simulation was stopped through its cancel token."""
