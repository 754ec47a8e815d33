"""Unit tests for AssociationSelector — resolving which associations to clone."""

import pytest

from revisable.exceptions import ConfigurationError
from revisable.models import Document, User
from revisable.services import AssociationSelector

DECLARED = frozenset({"comments", "tags", "owner"})


@pytest.fixture()
def selector(registry) -> AssociationSelector:
    return AssociationSelector(registry)


class TestSelection:
    """Each configuration form."""

    @pytest.mark.parametrize("config", [None, "", [], {}])
    def test_unset_selects_nothing(self, selector, config):
        assert selector.selected_associations(Document, config) == frozenset()

    def test_all(self, selector):
        assert selector.selected_associations(Document, "all") == DECLARED

    def test_revisions_relationship_is_not_an_association(self, selector):
        assert "revisions" not in selector.declared_associations(Document)

    def test_explicit_list(self, selector):
        assert selector.selected_associations(Document, ["tags"]) == {"tags"}

    def test_only(self, selector):
        assert selector.selected_associations(Document, {"only": ["owner", "tags"]}) == {"owner", "tags"}

    def test_only_single_name(self, selector):
        assert selector.selected_associations(Document, {"only": "owner"}) == {"owner"}

    def test_except(self, selector):
        assert selector.selected_associations(Document, {"except": ["comments"]}) == {"tags", "owner"}

    def test_all_without_associations(self, selector):
        assert selector.selected_associations(User, "all") == frozenset()

    def test_defaults_to_registry_config(self, selector):
        assert selector.selected_associations(Document) == {"tags", "owner"}


class TestMalformedConfig:
    """Bad configuration raises ConfigurationError."""

    def test_only_and_except(self, selector):
        with pytest.raises(ConfigurationError):
            selector.selected_associations(Document, {"only": ["tags"], "except": ["owner"]})

    def test_unknown_key(self, selector):
        with pytest.raises(ConfigurationError):
            selector.selected_associations(Document, {"include": ["tags"]})

    def test_unknown_string(self, selector):
        with pytest.raises(ConfigurationError):
            selector.selected_associations(Document, "everything")

    def test_unknown_association_name(self, selector):
        with pytest.raises(ConfigurationError) as exc_info:
            selector.selected_associations(Document, ["tags", "attachments"])
        assert exc_info.value.details["associations"] == ["attachments"]

    def test_wrong_type(self, selector):
        with pytest.raises(ConfigurationError):
            selector.selected_associations(Document, 42)

    def test_non_string_names(self, selector):
        with pytest.raises(ConfigurationError):
            selector.selected_associations(Document, {"only": [1, 2]})

    def test_unregistered_type_needs_explicit_config(self, selector):
        with pytest.raises(ConfigurationError):
            selector.selected_associations(User)


class TestMemoization:
    """Results are cached per type and recomputed when config changes."""

    def test_cached_result_reused(self, selector, monkeypatch):
        first = selector.selected_associations(Document, "all")
        calls = []
        original = selector._resolve
        monkeypatch.setattr(selector, "_resolve", lambda *a: calls.append(a) or original(*a))
        assert selector.selected_associations(Document, "all") is first
        assert calls == []

    def test_config_change_recomputes(self, selector, registry):
        assert selector.selected_associations(Document) == {"tags", "owner"}
        registry.configure(Document, clone_associations={"only": ["comments"]})
        assert selector.selected_associations(Document) == {"comments"}

    def test_invalidate(self, selector, monkeypatch):
        selector.selected_associations(Document, "all")
        selector.invalidate(Document)
        calls = []
        original = selector._resolve
        monkeypatch.setattr(selector, "_resolve", lambda *a: calls.append(a) or original(*a))
        selector.selected_associations(Document, "all")
        assert len(calls) == 1
