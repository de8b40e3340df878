"""
Registry of running pairwise support tallies, one per ordered candidate pair.
"""

import logging
import numbers
import threading
from typing import Dict, Hashable, Iterable, Iterator, List, Tuple

import numpy as np
import pandas as pd

from election.models import Candidate
from pairwise.errors import DuplicateKeyError, NotFoundError

logger = logging.getLogger(__name__)

PairKey = Tuple[Hashable, Hashable]


def _check_amount(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, numbers.Integral):
        raise TypeError(f"Tally amounts must be integers, got {amount!r}")
    if amount < 0:
        raise ValueError(f"Tally amounts cannot be negative, got {amount}")
    return int(amount)


class PairTally:
    """
    Running support for ``winner`` over ``loser``.

    The candidate pair is fixed at construction. Only ``value`` changes, and
    only upwards.
    """

    __slots__ = ("_winner", "_loser", "_value")

    def __init__(self, winner: Candidate, loser: Candidate, value: int = 0):
        if winner.id == loser.id:
            raise ValueError(f"A candidate cannot be tallied against itself: {winner}")
        self._winner = winner
        self._loser = loser
        self._value = _check_amount(value)

    @property
    def winner(self) -> Candidate:
        return self._winner

    @property
    def loser(self) -> Candidate:
        return self._loser

    @property
    def value(self) -> int:
        return self._value

    @property
    def key(self) -> PairKey:
        return (self._winner.id, self._loser.id)

    def add(self, amount: int) -> int:
        self._value += _check_amount(amount)
        return self._value

    def __repr__(self) -> str:
        return (
            f"PairTally(winner={self._winner.id!r}, loser={self._loser.id!r}, "
            f"value={self._value})"
        )


class PairTallyRegistry:
    """
    Holds one PairTally per ordered pair of distinct candidates.

    Entries are keyed by ``(winner.id, loser.id)`` and kept in registration
    order. Entries are never removed.
    """

    def __init__(self):
        self._tallies: Dict[PairKey, PairTally] = {}
        self._lock = threading.Lock()

    def register(self, tally: PairTally) -> None:
        """
        Add a tally for a new ordered pair.

        Raises:
            DuplicateKeyError: If the ordered pair already has a tally
        """
        if tally.key in self._tallies:
            raise DuplicateKeyError(
                f"Pair {tally.winner} over {tally.loser} is already registered"
            )
        self._tallies[tally.key] = tally

    def get(self, candidate_a: Candidate, candidate_b: Candidate) -> PairTally:
        """
        Look up the tally of support for ``candidate_a`` over ``candidate_b``.

        Raises:
            NotFoundError: If the pair was never registered
        """
        try:
            return self._tallies[(candidate_a.id, candidate_b.id)]
        except KeyError:
            raise NotFoundError(
                f"No tally registered for {candidate_a} over {candidate_b}"
            ) from None

    def value(self, candidate_a: Candidate, candidate_b: Candidate) -> int:
        return self.get(candidate_a, candidate_b).value

    def increment(
        self, candidate_a: Candidate, candidate_b: Candidate, amount: int
    ) -> int:
        """
        Add ``amount`` to the tally for ``candidate_a`` over ``candidate_b``.

        Args:
            candidate_a: Preferred candidate
            candidate_b: Less preferred candidate
            amount: Non-negative ballot weight to add (zero is allowed)

        Returns:
            The updated tally value
        """
        tally = self.get(candidate_a, candidate_b)
        with self._lock:
            return tally.add(amount)

    def increment_many(
        self, pairs: Iterable[Tuple[Candidate, Candidate]], amount: int
    ) -> None:
        """
        Add ``amount`` to the tally of every (preferred, less preferred) pair.

        All pairs are looked up before any tally changes, so an unknown pair
        leaves the registry untouched.

        Raises:
            NotFoundError: If any pair was never registered
        """
        amount = _check_amount(amount)
        tallies = [self.get(winner, loser) for winner, loser in pairs]
        with self._lock:
            for tally in tallies:
                tally.add(amount)

    def copy(self) -> "PairTallyRegistry":
        duplicate = PairTallyRegistry()
        for tally in self:
            duplicate.register(PairTally(tally.winner, tally.loser, tally.value))
        return duplicate

    def merge(self, other: "PairTallyRegistry") -> "PairTallyRegistry":
        """
        Add every count held by ``other`` into this registry.

        Both registries must cover the same pairs; every pair of ``other`` is
        looked up before anything is added, so a mismatch leaves this
        registry untouched.

        Returns:
            This registry, for chaining
        """
        updates = [(self.get(t.winner, t.loser), t.value) for t in other]
        with self._lock:
            for tally, amount in updates:
                tally.add(amount)
        logger.debug(f"Merged {len(updates)} pair tallies")
        return self

    def candidates(self) -> List[Candidate]:
        """Candidates appearing in the registry, in order of first registration."""
        seen: Dict[Hashable, Candidate] = {}
        for tally in self._tallies.values():
            seen.setdefault(tally.winner.id, tally.winner)
            seen.setdefault(tally.loser.id, tally.loser)
        return list(seen.values())

    def to_dataframe(self) -> pd.DataFrame:
        """
        Export the tallies in long format.

        Returns:
            DataFrame with winner_id, winner_name, loser_id, loser_name, value
        """
        return pd.DataFrame(
            [
                {
                    "winner_id": tally.winner.id,
                    "winner_name": tally.winner.name,
                    "loser_id": tally.loser.id,
                    "loser_name": tally.loser.name,
                    "value": tally.value,
                }
                for tally in self
            ],
            columns=["winner_id", "winner_name", "loser_id", "loser_name", "value"],
        )

    def to_array(self) -> np.ndarray:
        """
        Square support matrix; entry [i, j] is support for candidate i over j.

        Rows and columns follow ``candidates()``. The diagonal is zero.
        """
        candidates = self.candidates()
        index = {candidate.id: position for position, candidate in enumerate(candidates)}
        matrix = np.zeros((len(candidates), len(candidates)), dtype=np.int64)
        for (winner_id, loser_id), tally in self._tallies.items():
            matrix[index[winner_id], index[loser_id]] = tally.value
        return matrix

    def to_matrix(self) -> pd.DataFrame:
        """Support matrix labelled by candidate id, with NaN on the diagonal."""
        ids = [candidate.id for candidate in self.candidates()]
        matrix = self.to_array().astype(float)
        np.fill_diagonal(matrix, np.nan)
        return pd.DataFrame(matrix, index=ids, columns=ids)

    def __len__(self) -> int:
        return len(self._tallies)

    def __iter__(self) -> Iterator[PairTally]:
        return iter(list(self._tallies.values()))

    def __contains__(self, pair: object) -> bool:
        try:
            candidate_a, candidate_b = pair
            return (candidate_a.id, candidate_b.id) in self._tallies
        except (TypeError, ValueError, AttributeError):
            return False

    def __repr__(self) -> str:
        return f"PairTallyRegistry({len(self._tallies)} pairs)"


def merge_registries(*registries: PairTallyRegistry) -> PairTallyRegistry:
    """
    Combine partial registries by pairwise addition into a new registry.

    The inputs are left unchanged. Addition is commutative and associative,
    so the order of the inputs does not affect the result.
    """
    if not registries:
        raise ValueError("At least one registry is required to merge")
    merged = registries[0].copy()
    for registry in registries[1:]:
        merged.merge(registry)
    return merged
