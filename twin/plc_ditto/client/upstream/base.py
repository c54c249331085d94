# upstream/base.py

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

from .types import UpstreamState

logger = logging.getLogger(__name__)

# Handles state transitions (READY <-> UNAVAILABLE)
StateChangeHandler = Callable[[UpstreamState], Awaitable[None]]


class UpstreamUnavailableError(RuntimeError):
    """Update requested while the upstream connection is not READY"""


class BaseUpstreamAdapter(ABC):
    """
    Abstract interface for the twin store connection
    Only knows the twin store protocol - not the scheduler or the sources

    One adapter instance is shared by all poll tasks; implementations must
    accept concurrent put_property() calls from the event loop
    """

    def __init__(self) -> None:
        self._state: UpstreamState = UpstreamState.INITIALIZING
        self._state_handler: Optional[StateChangeHandler] = None

    @property
    def state(self) -> UpstreamState:
        return self._state

    # --- Lifecycle Methods ---

    @abstractmethod
    async def start(self) -> None:
        """
        Open the connection, raise if it can not be established
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """
        Close the connection and release resources
        """
        pass

    # --- Setup Methods ---

    def register_state_handler(self, handler: StateChangeHandler) -> None:
        """
        Register callback for state changes (e.g., READY -> UNAVAILABLE)
        """
        self._state_handler = handler

    # --- Outgoing (Bridge -> Twin store) ---

    @abstractmethod
    def put_property(self, thing_id: str, feature_id: str, path: str, value: Any) -> "asyncio.Future[None]":
        """
        Set one feature property of a twin

        Returns immediately with a future that completes when the twin store
        acknowledged the update, or fails with the reason it was not applied
        """
        pass

    # --- Internal Helpers (For subclasses) ---

    async def _set_state(self, new_state: UpstreamState) -> None:
        """
        Switch to new_state and tell the registered handler (no-op if unchanged)
        """
        if self._state == new_state:
            return
        previous, self._state = self._state, new_state
        logger.info("%s: %s -> %s", type(self).__name__, previous.name, new_state.name)

        if self._state_handler is None:
            return
        try:
            await self._state_handler(new_state)
        except Exception as e:
            logger.error("State handler failed on %s: %r", new_state.name, e)
