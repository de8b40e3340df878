"""
Pairwise preference tallies for ranked pairs (Tideman) elections.

This module provides:
- TallyEngine: folds weighted ballots into per-pair support counts
- PairTallyRegistry: one running PairTally per ordered candidate pair
- RegistryVerifier: structural audit of a finished registry
"""

from .calculator import (
    MissingCandidatePolicy,
    PairResult,
    TallyEngine,
    calculate,
    ordered_pairs,
)
from .errors import (
    DuplicateCandidateError,
    DuplicateKeyError,
    NotFoundError,
    TallyError,
    UnrankedCandidateError,
)
from .registry import PairTally, PairTallyRegistry, merge_registries
from .verification import RegistryVerifier

__all__ = [
    "TallyEngine",
    "MissingCandidatePolicy",
    "PairResult",
    "calculate",
    "ordered_pairs",
    "PairTally",
    "PairTallyRegistry",
    "merge_registries",
    "RegistryVerifier",
    "TallyError",
    "DuplicateKeyError",
    "NotFoundError",
    "UnrankedCandidateError",
    "DuplicateCandidateError",
]
