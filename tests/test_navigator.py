"""Unit tests for LineageNavigator — ancestry, resolution and listings."""

import pytest

from revisable.exceptions import LineageIntegrityError, RevisionNotFoundError
from revisable.models import DocumentRevision
from revisable.schemas import DeletedMode, RevisionFilter
from revisable.services import RevisionToken
from tests.conftest import edit, make_document


@pytest.fixture()
def lineage(service, db):
    """A document with five revisions; returns (doc, [rev1..rev5])."""
    doc = make_document(db, content="v0")
    revisions = [edit(service, doc, content=f"v{i}") for i in range(1, 6)]
    return doc, revisions


class TestAncestry:
    """ancestors_of / descendants_of ordering and membership."""

    def test_ancestors_most_recent_first(self, service, lineage):
        _, revs = lineage
        ancestors = service.ancestors(revs[3])
        assert [r.number for r in ancestors] == [3, 2, 1]

    def test_descendants_oldest_first(self, service, lineage):
        _, revs = lineage
        descendants = service.descendants(revs[1])
        assert [r.number for r in descendants] == [3, 4, 5]

    def test_first_has_no_ancestors(self, service, lineage):
        _, revs = lineage
        assert service.ancestors(revs[0]) == []

    def test_latest_has_no_descendants(self, service, lineage):
        _, revs = lineage
        assert service.descendants(revs[-1]) == []

    def test_other_lineages_excluded(self, service, db, lineage):
        _, revs = lineage
        other = make_document(db, title="Other")
        edit(service, other, content="x")
        edit(service, other, content="y")
        assert all(r.original_id == revs[0].original_id for r in service.ancestors(revs[4]))
        assert len(service.ancestors(revs[4])) == 4

    def test_ancestors_include_deleted_by_default(self, service, lineage):
        _, revs = lineage
        service.delete_revision(revs[1])
        assert [r.number for r in service.ancestors(revs[3])] == [3, 2, 1]

    def test_ancestors_can_exclude_deleted(self, service, lineage):
        _, revs = lineage
        service.delete_revision(revs[1])
        filters = RevisionFilter(deleted=DeletedMode.EXCLUDE)
        assert [r.number for r in service.ancestors(revs[3], filters)] == [3, 1]

    def test_example_two_revisions(self, service, db):
        doc = make_document(db)
        first = edit(service, doc, content="v2")
        second = edit(service, doc, content="v3")
        assert service.ancestors(second) == [first]
        assert service.find_revision(doc, "previous", relative_to=second) == first


class TestNeighbours:
    """previous/next revision lookups."""

    def test_previous_and_next(self, service, lineage):
        _, revs = lineage
        assert service.previous_revision(revs[2]) == revs[1]
        assert service.next_revision(revs[2]) == revs[3]

    def test_ends_return_none(self, service, lineage):
        _, revs = lineage
        assert service.previous_revision(revs[0]) is None
        assert service.next_revision(revs[-1]) is None

    def test_gap_is_reported(self, service, db, lineage):
        _, revs = lineage
        # Simulate a corrupted lineage by removing a row out from under the ledger.
        db.query(DocumentRevision).filter(DocumentRevision.id == revs[2].id).delete()
        db.commit()
        with pytest.raises(LineageIntegrityError) as exc_info:
            service.previous_revision(revs[3])
        assert exc_info.value.details["earlier"] == 2
        assert exc_info.value.details["later"] == 4


class TestResolve:
    """Symbolic, numeric and id selectors."""

    def test_last_is_highest_number(self, service, lineage):
        doc, revs = lineage
        assert service.find_revision(doc, "last") == revs[-1]
        assert service.find_revision(doc, RevisionToken.LAST).number == 5

    def test_first_is_number_one(self, service, lineage):
        doc, revs = lineage
        assert service.find_revision(doc, "first").number == 1

    def test_colon_prefix_accepted(self, service, lineage):
        doc, revs = lineage
        assert service.find_revision(doc, ":last") == revs[-1]

    def test_previous_is_latest_revision(self, service, lineage):
        """The live document is the current state; the newest revision precedes it."""
        doc, revs = lineage
        assert service.find_revision(doc, "previous") == revs[-1]
        assert service.find_revision(doc, "previous") == service.find_revision(doc, "last")

    def test_previous_and_next_relative(self, service, lineage):
        doc, revs = lineage
        assert service.find_revision(doc, "previous", relative_to=revs[2]) == revs[1]
        assert service.find_revision(doc, "next", relative_to=revs[2]) == revs[3]

    def test_next_without_anchor_not_found(self, service, lineage):
        doc, _ = lineage
        with pytest.raises(RevisionNotFoundError):
            service.find_revision(doc, "next")

    def test_by_number(self, service, lineage):
        doc, revs = lineage
        assert service.find_revision(doc, 3) == revs[2]

    def test_negative_offset_from_latest(self, service, lineage):
        doc, revs = lineage
        assert service.find_revision(doc, 0) == revs[4]
        assert service.find_revision(doc, -2) == revs[2]
        assert service.find_revision_optional(doc, -5) is None

    def test_by_id(self, service, lineage):
        doc, revs = lineage
        assert service.find_revision(doc, revs[1].id) == revs[1]

    def test_id_from_other_lineage_not_found(self, service, db, lineage):
        doc, _ = lineage
        other = make_document(db, title="Other")
        foreign = edit(service, other, content="x")
        with pytest.raises(RevisionNotFoundError):
            service.find_revision(doc, foreign.id)

    def test_missing_number_not_found(self, service, lineage):
        doc, _ = lineage
        with pytest.raises(RevisionNotFoundError) as exc_info:
            service.find_revision(doc, 42)
        assert exc_info.value.details["original_id"] == doc.id
        assert service.find_revision_optional(doc, 42) is None

    def test_empty_lineage(self, service, db):
        doc = make_document(db)
        assert service.find_revision_optional(doc, "last") is None
        assert service.find_revision_optional(doc, "first") is None
        assert service.find_revision_optional(doc, "previous") is None
        assert service.find_revision_optional(doc, 0) is None

    def test_previous_with_single_revision(self, service, db):
        doc = make_document(db)
        only = edit(service, doc, content="v2")
        assert service.find_revision(doc, "previous") == only

    def test_bool_is_not_a_number(self, service, lineage):
        doc, _ = lineage
        assert service.find_revision_optional(doc, True) is None

    def test_first_gap_is_reported(self, service, db, lineage):
        doc, revs = lineage
        db.query(DocumentRevision).filter(DocumentRevision.id == revs[0].id).delete()
        db.commit()
        with pytest.raises(LineageIntegrityError):
            service.find_revision(doc, "first")


class TestListings:
    """history(), deleted_revisions() and explicit filters."""

    def test_history_newest_first(self, service, lineage):
        doc, _ = lineage
        assert [r.number for r in service.history(doc)] == [5, 4, 3, 2, 1]

    def test_history_hides_deleted(self, service, lineage):
        doc, revs = lineage
        service.delete_revision(revs[4])
        assert [r.number for r in service.history(doc)] == [4, 3, 2, 1]

    def test_history_can_include_deleted(self, service, lineage):
        doc, revs = lineage
        service.delete_revision(revs[4])
        everything = service.history(doc, filters=RevisionFilter(deleted=DeletedMode.INCLUDE))
        assert len(everything) == 5

    def test_history_pagination(self, service, lineage):
        doc, _ = lineage
        assert [r.number for r in service.history(doc, skip=1, limit=2)] == [4, 3]

    def test_deleted_revisions(self, service, lineage):
        doc, revs = lineage
        service.delete_revision(revs[0])
        service.delete_revision(revs[3])
        assert [r.number for r in service.deleted_revisions(doc)] == [4, 1]

    def test_delete_is_idempotent(self, service, lineage):
        _, revs = lineage
        service.delete_revision(revs[0])
        first_stamp = revs[0].deleted_at
        service.delete_revision(revs[0])
        assert revs[0].deleted_at == first_stamp

    def test_verify_lineage_reports_gaps(self, service, db, lineage):
        doc, revs = lineage
        db.query(DocumentRevision).filter(DocumentRevision.id == revs[1].id).delete()
        db.commit()
        with pytest.raises(LineageIntegrityError) as exc_info:
            service.verify_lineage(doc)
        assert exc_info.value.details["missing"] == [2]

    def test_summarize(self, service, db, lineage):
        doc, _ = lineage
        summary = service.summarize(doc)
        assert summary.original_id == doc.id
        assert summary.revision_count == 5
        assert summary.latest_number == 5
        assert summary.type_tag == "Document"
        assert [r.number for r in summary.revisions] == [5, 4, 3, 2, 1]
        assert summary.revisions[0].is_current is False
