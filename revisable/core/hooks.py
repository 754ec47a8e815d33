"""Lifecycle notifications fired around appends and restores.

Callbacks run synchronously inside the caller's unit of work. A callback
that raises aborts the operation; errors are never swallowed here.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

AFTER_APPEND = "after_append"
BEFORE_RESTORE = "before_restore"
AFTER_RESTORE = "after_restore"

HOOK_EVENTS = (AFTER_APPEND, BEFORE_RESTORE, AFTER_RESTORE)


@dataclass(frozen=True)
class RevisionCreated:
    """Payload of ``after_append``: what the snapshot-copy routine needs."""
    revision_id: str
    original_id: str
    number: int
    type_tag: str
    associations: frozenset


@dataclass(frozen=True)
class RevertContext:
    """Per-restore parameters passed down the restore call chain.

    ``reverting_from`` is the revision holding the pre-restore state,
    ``reverting_to`` the revision being restored.
    """
    reverting_from: Optional[str]
    reverting_to: str


class RevisionHooks:
    """Callback lists keyed by event name."""

    def __init__(self):
        self._callbacks: Dict[str, List[Callable]] = {event: [] for event in HOOK_EVENTS}

    def register(self, event: str, callback: Callable) -> Callable:
        """Add *callback* for *event*. Returns the callback so it works as a decorator body."""
        if event not in self._callbacks:
            raise ValueError(f"Unknown hook event: {event}. Must be one of: {list(HOOK_EVENTS)}")
        self._callbacks[event].append(callback)
        return callback

    def on(self, event: str) -> Callable[[Callable], Callable]:
        """Decorator form of register()."""
        def decorator(callback: Callable) -> Callable:
            return self.register(event, callback)
        return decorator

    def fire(self, event: str, *args) -> None:
        callbacks = self._callbacks[event]
        if callbacks:
            logger.debug(f"Firing {event} to {len(callbacks)} callback(s)")
        for callback in callbacks:
            callback(*args)
