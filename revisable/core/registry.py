"""Explicit registry of revisable types.

Maps each live-entity class to its revision class, its association-clone
configuration and its hooks. Callers build one registry and hand it to the
ledger, navigator and selector; nothing here is module-level state.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Type

from ..exceptions import ConfigurationError
from ..models.mixins import RevisableMixin, RevisionMixin
from .hooks import RevisionHooks

logger = logging.getLogger(__name__)


@dataclass
class RevisableOptions:
    """Configuration of one revisable domain type."""
    live_class: Type[RevisableMixin]
    revision_class: Type[RevisionMixin]
    # None/empty, "all", a list of names, {"only": [...]} or {"except": [...]}
    clone_associations: Any = None
    hooks: RevisionHooks = field(default_factory=RevisionHooks)


class RevisableRegistry:
    """Live class -> RevisableOptions, with a reverse index by revision class."""

    def __init__(self):
        self._by_live: Dict[type, RevisableOptions] = {}
        self._by_revision: Dict[type, RevisableOptions] = {}

    def register(
        self,
        live_class: Type[RevisableMixin],
        revision_class: Type[RevisionMixin],
        clone_associations: Any = None,
    ) -> RevisableOptions:
        """Register a live/revision class pair. Re-registering replaces the entry."""
        if not (isinstance(live_class, type) and issubclass(live_class, RevisableMixin)):
            raise ConfigurationError(
                f"{live_class!r} is not a revisable live class",
                live_class=repr(live_class),
            )
        if not (isinstance(revision_class, type) and issubclass(revision_class, RevisionMixin)):
            raise ConfigurationError(
                f"{revision_class!r} is not a revision class",
                revision_class=repr(revision_class),
            )

        previous = self._by_live.pop(live_class, None)
        if previous is not None:
            self._by_revision.pop(previous.revision_class, None)

        options = RevisableOptions(live_class, revision_class, clone_associations)
        self._by_live[live_class] = options
        self._by_revision[revision_class] = options
        logger.debug(f"Registered {live_class.__name__} -> {revision_class.__name__}")
        return options

    def configure(self, live_class: type, *, clone_associations: Any) -> RevisableOptions:
        """Change the association-clone configuration of a registered type."""
        options = self.options_for(live_class)
        options.clone_associations = clone_associations
        return options

    def options_for(self, target: Any) -> RevisableOptions:
        """Options for a live or revision class, or an instance of either."""
        cls = target if isinstance(target, type) else type(target)
        options = self._by_live.get(cls) or self._by_revision.get(cls)
        if options is None:
            raise ConfigurationError(
                f"{cls.__name__} is not registered as revisable",
                class_name=cls.__name__,
            )
        return options

    def revision_class_for(self, target: Any) -> Type[RevisionMixin]:
        return self.options_for(target).revision_class

    def live_class_for(self, target: Any) -> Type[RevisableMixin]:
        return self.options_for(target).live_class

    def hooks_for(self, target: Any) -> RevisionHooks:
        return self.options_for(target).hooks

    def __contains__(self, cls: type) -> bool:
        return cls in self._by_live or cls in self._by_revision

    def __iter__(self) -> Iterator[RevisableOptions]:
        return iter(list(self._by_live.values()))
