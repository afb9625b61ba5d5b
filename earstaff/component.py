"""Config-driven components.

A component owns one slice of the engine ``Config``. When the host hands
it a new root config the slice is re-extracted and the component only
reacts if that slice changed, so a clef switch reaches the mapper while a
capacity change does not.
"""

import logging
from abc import ABCMeta, abstractmethod
from typing import Any, Generic, Optional, Type, TypeVar

C = TypeVar("C")
"""Root configuration type."""
X = TypeVar("X", bound="MappedComponentConfig[Any]")
"""Configuration slice type."""
R = TypeVar("R")
"""Result of applying a slice."""


class MappedComponentConfig(Generic[C], metaclass=ABCMeta):
    """A configuration slice that can be read off a root configuration."""

    @classmethod
    @abstractmethod
    def extract(cls: Type[X], root_config: C) -> X:
        """Read this slice from the root configuration.

        Args:
            root_config: The engine-wide configuration.

        Returns:
            The slice relevant to one component.
        """
        raise NotImplementedError()


class MappedComponent(Generic[C, X, R], metaclass=ABCMeta):
    """Base for components that track one slice of the root configuration."""

    @classmethod
    @abstractmethod
    def extract_config(cls, root_config: C) -> X:
        raise NotImplementedError()

    def __init__(self, config: X) -> None:
        self._config = config

    @property
    def config(self) -> X:
        """The slice currently applied."""
        return self._config

    @abstractmethod
    def handle_mapped_config(self, config: X) -> R:
        """Apply a changed slice. Implementations store it as the new config."""
        raise NotImplementedError()

    def handle_config(self, config: C, reset: bool = False) -> Optional[R]:
        """Offer a new root configuration to this component.

        Args:
            config: The new root configuration.
            reset: Apply the slice even when it is unchanged.

        Returns:
            The result of ``handle_mapped_config``, or None when the slice
            is unchanged and no reset was requested.
        """
        sub_config = type(self).extract_config(config)
        if sub_config == self._config and not reset:
            return None
        logging.debug("%s applying %s", type(self).__name__, sub_config)
        return self.handle_mapped_config(sub_config)
