"""
Observable state holder shared by the recipe, interaction, library and
settings stores.

State values are immutable snapshots. A store replaces its snapshot
wholesale and notifies subscribers with ``(state, previous)``.
"""

import logging
from typing import Callable, Generic, List, TypeVar, Union

logger = logging.getLogger(__name__)

S = TypeVar('S')

Listener = Callable[[S, S], None]


class Store(Generic[S]):
    """Single-writer state container with change subscriptions."""

    def __init__(self, initial: S):
        self._state = initial
        self._listeners: List[Listener] = []

    def get(self) -> S:
        """Return the current snapshot."""
        return self._state

    def set(self, update: Union[S, Callable[[S], S]]) -> S:
        """
        Replace the current snapshot.

        Args:
            update: New snapshot, or a function mapping the current snapshot
                to the new one

        Returns:
            The snapshot now held by the store
        """
        previous = self._state
        state = update(previous) if callable(update) else update
        if state is previous:
            return state
        self._state = state
        self._notify(state, previous)
        return state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, state: S, previous: S):
        for listener in list(self._listeners):
            try:
                listener(state, previous)
            except Exception as e:
                logger.error(f"Store listener failed: {e}")
