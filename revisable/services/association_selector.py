"""Association selection for snapshots.

Decides which associations of a live entity the external snapshot-copy
routine should duplicate into a revision. Only resolves names; copying
happens elsewhere.

Accepted configurations, in precedence order:
    None / "" / [] / {}     -- nothing is cloned
    "all"                   -- every declared association
    ["a", "b"]              -- exactly those
    {"only": [...]}         -- exactly those (a single name is accepted)
    {"except": [...]}       -- every declared association minus those
"""

import logging
from typing import Any, Dict, Hashable, Optional, Tuple

from sqlalchemy import inspect

from ..core.registry import RevisableRegistry
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ALL = "all"
_UNSET = object()


def _as_names(value: Any, key: str) -> Tuple[str, ...]:
    """Normalize a single name or a list of names."""
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple, set, frozenset)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ConfigurationError(
        f"'{key}' must be an association name or a list of names",
        key=key,
    )


def _fingerprint(config: Any) -> Hashable:
    """Hashable identity of a config, used to detect changes between calls."""
    if isinstance(config, dict):
        return ("dict", tuple(sorted((k, _fingerprint(v)) for k, v in config.items())))
    if isinstance(config, (list, tuple, set, frozenset)):
        return ("seq", tuple(sorted(map(str, config))))
    return ("scalar", config)


class AssociationSelector:
    """Resolves clone configuration to association names, memoized per type.

    A cached result is reused only while the configuration it was computed
    from is unchanged; call invalidate() after remapping a class.
    """

    def __init__(self, registry: RevisableRegistry):
        self.registry = registry
        self._cache: Dict[type, Tuple[Hashable, frozenset]] = {}

    def declared_associations(self, live_class: type) -> frozenset:
        """Relationship names on *live_class*, minus the link to its own revisions."""
        revision_class = None
        if live_class in self.registry:
            revision_class = self.registry.revision_class_for(live_class)
        return frozenset(
            rel.key for rel in inspect(live_class).relationships
            if revision_class is None or rel.mapper.class_ is not revision_class
        )

    def selected_associations(self, live_class: type, config: Any = _UNSET) -> frozenset:
        """Association names to clone for *live_class*.

        *config* defaults to the registry's clone_associations for the class.
        """
        if config is _UNSET:
            config = self.registry.options_for(live_class).clone_associations

        key = _fingerprint(config)
        cached = self._cache.get(live_class)
        if cached is not None and cached[0] == key:
            return cached[1]

        selected = self._resolve(live_class, config)
        self._cache[live_class] = (key, selected)
        logger.debug(
            f"Resolved cloned associations for {live_class.__name__}: {sorted(selected)}"
        )
        return selected

    def invalidate(self, live_class: Optional[type] = None) -> None:
        """Drop memoized selections for one class, or all of them."""
        if live_class is None:
            self._cache.clear()
        else:
            self._cache.pop(live_class, None)

    def _resolve(self, live_class: type, config: Any) -> frozenset:
        if not config:
            return frozenset()

        declared = self.declared_associations(live_class)

        if isinstance(config, str):
            if config == ALL:
                return declared
            raise ConfigurationError(
                f"Unknown association selection '{config}'. Use 'all', a list, or an only/except mapping",
                config=config,
            )

        if isinstance(config, (list, tuple, set, frozenset)):
            names = _as_names(config, "associations")
            self._check_declared(live_class, names, declared)
            return frozenset(names)

        if isinstance(config, dict):
            unknown_keys = set(config) - {"only", "except"}
            if unknown_keys:
                raise ConfigurationError(
                    f"Unknown association selection keys: {sorted(unknown_keys)}",
                    keys=sorted(unknown_keys),
                )
            if "only" in config and "except" in config:
                raise ConfigurationError("Association selection cannot combine 'only' and 'except'")
            if "only" in config:
                names = _as_names(config["only"], "only")
                self._check_declared(live_class, names, declared)
                return frozenset(names)
            names = _as_names(config["except"], "except")
            self._check_declared(live_class, names, declared)
            return declared - frozenset(names)

        raise ConfigurationError(
            f"Association selection must be a string, list or mapping, not {type(config).__name__}",
            config_type=type(config).__name__,
        )

    @staticmethod
    def _check_declared(live_class: type, names: Tuple[str, ...], declared: frozenset) -> None:
        missing = sorted(set(names) - declared)
        if missing:
            raise ConfigurationError(
                f"{live_class.__name__} has no associations named {missing}",
                class_name=live_class.__name__,
                associations=missing,
            )
