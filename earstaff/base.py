"""Lifecycle interfaces, the unit result and engine exceptions."""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from typing import Any


class Closeable(metaclass=ABCMeta):
    """Something holding a resource (a port, a layout) until closed."""

    @abstractmethod
    def close(self) -> None:
        """Release held resources. The object is unusable afterwards."""
        raise NotImplementedError()


class Resettable(metaclass=ABCMeta):
    """Something with an initial state it can return to."""

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError()


@dataclass(frozen=True)
class Unit:
    """Result type for config handlers that only report "something changed"."""

    @staticmethod
    def instance() -> Unit:
        return _UNIT


_UNIT = Unit()


class MatchException(Exception):
    """An enum dispatch fell through every branch."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Unmatched value: {value}")


class EngineNotInitializedError(Exception):
    """Raised at setup time when no usable staff layout is available.

    Hosts should treat this as fatal for the interaction surface: disable
    input and show a degraded state instead of retrying per event.
    """

    def __init__(self, reason: str) -> None:
        """Initialize with a human-readable reason.

        Args:
            reason: Why the staff layout could not be used.
        """
        super().__init__(f"Staff engine not initialized: {reason}")
        self.reason = reason
