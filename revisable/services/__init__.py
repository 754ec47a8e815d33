"""Service layer: ledger, branch tracker, navigator, association selector."""

from .association_selector import AssociationSelector
from .branch_tracker import BranchTracker
from .ledger import RevisionLedger
from .navigator import LineageNavigator, RevisionToken
from .revision_service import RevisionService

__all__ = [
    "AssociationSelector",
    "BranchTracker",
    "RevisionLedger",
    "LineageNavigator",
    "RevisionToken",
    "RevisionService",
]
