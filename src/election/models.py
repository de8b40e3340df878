"""
Election data model: candidates, the agenda they contest, and ranked ballots.
"""

import logging
import numbers
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Hashable, Iterable, Iterator, List, Tuple, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """A contestant. Two candidates are equal when their ids are equal."""

    id: Hashable
    name: str = field(compare=False)

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


@dataclass(frozen=True)
class Agenda:
    """
    The fixed, ordered set of candidates contesting one election.

    Candidate ids are expected to be unique. The agenda does not check this
    itself; a duplicate id is reported when a tally registry is built from it.
    """

    candidates: Tuple[Candidate, ...]

    def __post_init__(self):
        candidates = tuple(self.candidates)
        for candidate in candidates:
            if not isinstance(candidate, Candidate):
                raise TypeError(
                    f"Agenda members must be Candidate instances, got {candidate!r}"
                )
        object.__setattr__(self, "candidates", candidates)

    @property
    def candidate_ids(self) -> FrozenSet[Hashable]:
        return frozenset(candidate.id for candidate in self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self.candidates)

    def __contains__(self, candidate: object) -> bool:
        return candidate in self.candidates


RankGroup = Tuple[Candidate, ...]
RankingKey = Tuple[FrozenSet[Tuple[Hashable, int]], ...]


@dataclass(frozen=True)
class Ballot:
    """
    One voter's ranking as an ordered sequence of rank-groups.

    Rank index 0 is the most preferred group. Candidates sharing a group are
    tied. A lone Candidate may be given in place of a one-member group, so
    ``Ballot([alice, bob])`` and ``Ballot([[alice], [bob]])`` are the same
    ranking.

    A ballot that names a candidate more than once is representable; it is
    rejected when the tally engine builds its rank map.
    """

    ranks: Tuple[RankGroup, ...]

    def __post_init__(self):
        groups = []
        for position, group in enumerate(self.ranks):
            if isinstance(group, Candidate):
                group = (group,)
            group = tuple(group)
            if not group:
                raise ValueError(f"Rank-group {position} of a ballot is empty")
            for candidate in group:
                if not isinstance(candidate, Candidate):
                    raise TypeError(
                        f"Rank-group {position} contains a non-Candidate: {candidate!r}"
                    )
            groups.append(group)
        object.__setattr__(self, "ranks", tuple(groups))

    def candidates(self) -> List[Candidate]:
        """All ranked candidates, most preferred first."""
        return [candidate for group in self.ranks for candidate in group]

    def ranking_key(self) -> RankingKey:
        """
        Identity of the ranking, ignoring the order inside tied groups.

        Each group is keyed by how often every id occurs in it, so a group
        that repeats a candidate never matches the group without the repeat.
        """
        return tuple(
            frozenset(Counter(c.id for c in group).items()) for group in self.ranks
        )

    def __len__(self) -> int:
        return len(self.ranks)

    def __iter__(self) -> Iterator[RankGroup]:
        return iter(self.ranks)


@dataclass(frozen=True)
class WeightedBallot:
    """A ballot standing in for ``count`` identical real ballots."""

    ballot: Ballot
    count: int = 1

    def __post_init__(self):
        if not isinstance(self.ballot, Ballot):
            raise TypeError(f"Expected a Ballot, got {self.ballot!r}")
        if isinstance(self.count, bool) or not isinstance(
            self.count, numbers.Integral
        ):
            raise TypeError(f"Ballot count must be an integer, got {self.count!r}")
        if self.count < 1:
            raise ValueError(f"Ballot count must be positive, got {self.count}")
        # numpy integers coming out of DataFrames
        object.__setattr__(self, "count", int(self.count))

    def __iter__(self) -> Iterator[RankGroup]:
        return iter(self.ballot)


def compress_ballots(
    ballots: Iterable[Union[Ballot, WeightedBallot]]
) -> List[WeightedBallot]:
    """
    Collapse identical rankings into weighted ballots.

    Args:
        ballots: Plain or weighted ballots, in any mix

    Returns:
        One WeightedBallot per distinct ranking, in first-seen order, whose
        count is the summed weight of every ballot with that ranking
    """
    first_seen: Dict[RankingKey, Ballot] = {}
    counts: Dict[RankingKey, int] = {}
    received = 0

    for item in ballots:
        if isinstance(item, WeightedBallot):
            ballot, count = item.ballot, item.count
        elif isinstance(item, Ballot):
            ballot, count = item, 1
        else:
            raise TypeError(f"Expected a Ballot or WeightedBallot, got {item!r}")

        key = ballot.ranking_key()
        first_seen.setdefault(key, ballot)
        counts[key] = counts.get(key, 0) + count
        received += 1

    compressed = [WeightedBallot(first_seen[key], counts[key]) for key in first_seen]
    logger.debug(f"Compressed {received} ballots into {len(compressed)} rankings")
    return compressed
