"""
Pairwise tally engine for ranked pairs (Tideman) elections.

Folds weighted ranked ballots into a registry of per-pair support counts:
for each ordered pair of distinct candidates, the ballot weight ranking the
first strictly above the second.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Hashable, List, Sequence, Tuple, Union

from election.models import Agenda, Ballot, Candidate, WeightedBallot
from pairwise.errors import (
    DuplicateCandidateError,
    NotFoundError,
    TallyError,
    UnrankedCandidateError,
)
from pairwise.registry import PairTally, PairTallyRegistry, merge_registries

logger = logging.getLogger(__name__)

RankMap = Dict[Hashable, int]


class MissingCandidatePolicy(str, Enum):
    """What to do when a ballot leaves an agenda candidate unranked."""

    SKIP = "skip"
    ERROR = "error"


@dataclass(frozen=True)
class PairResult:
    """Outcome of comparing two candidates on one ballot."""

    winner: Candidate
    loser: Candidate


def ordered_pairs(agenda: Agenda) -> List[Tuple[Candidate, Candidate]]:
    """
    Every ordered pair of distinct candidates in the agenda.

    Both positions follow agenda order, so for N candidates the result holds
    N(N-1) pairs in a fixed, reproducible sequence.
    """
    return [
        (outer, inner)
        for outer in agenda.candidates
        for inner in agenda.candidates
        if outer.id != inner.id
    ]


class TallyEngine:
    """
    Builds pairwise support tallies from weighted ranked ballots.

    For every ordered pair (A, B) of distinct agenda candidates the resulting
    registry holds the total ballot weight ranking A strictly above B. This is
    the input to a ranked pairs (Tideman) count; the engine itself does not
    pick a winner.
    """

    def __init__(
        self,
        missing_candidates: Union[
            str, MissingCandidatePolicy
        ] = MissingCandidatePolicy.SKIP,
    ):
        """
        Initialize the tally engine.

        Args:
            missing_candidates: "skip" ignores pairs involving a candidate the
                ballot leaves unranked; "error" rejects such ballots
        """
        self.missing_candidates = MissingCandidatePolicy(missing_candidates)

    def initialize(self, agenda: Agenda) -> PairTallyRegistry:
        """
        Register a zero tally for every ordered pair of distinct candidates.

        Raises:
            DuplicateKeyError: If the agenda repeats a candidate id
        """
        registry = PairTallyRegistry()
        for outer, inner in ordered_pairs(agenda):
            registry.register(PairTally(outer, inner, 0))
        logger.debug(
            f"Initialized {len(registry)} pair tallies for {len(agenda)} candidates"
        )
        return registry

    def rank_map(self, ballot: Union[Ballot, WeightedBallot]) -> RankMap:
        """
        Map each ranked candidate id to its rank index (0 is most preferred).

        Tied candidates share an index.

        Raises:
            DuplicateCandidateError: If the ballot names a candidate twice
        """
        ranks: RankMap = {}
        for rank, group in enumerate(ballot):
            for candidate in group:
                if candidate.id in ranks:
                    raise DuplicateCandidateError(
                        f"A ballot cannot contain a candidate more than once. "
                        f"Candidate {candidate} appears at ranks "
                        f"{ranks[candidate.id]} and {rank}"
                    )
                ranks[candidate.id] = rank
        return ranks

    def resolve_pair_winner(
        self, candidate_a: Candidate, candidate_b: Candidate, rank_map: RankMap
    ) -> PairResult:
        """
        Decide which of two ranked candidates the ballot prefers.

        Args:
            candidate_a: First candidate
            candidate_b: Second candidate
            rank_map: Result of ``rank_map`` for the ballot

        Returns:
            PairResult whose winner has the strictly lower rank index

        Raises:
            UnrankedCandidateError: If either candidate is absent from rank_map
            ValueError: If the candidates are tied
        """
        for candidate in (candidate_a, candidate_b):
            if candidate.id not in rank_map:
                raise UnrankedCandidateError(
                    f"Candidate {candidate} is not ranked on this ballot"
                )

        rank_a = rank_map[candidate_a.id]
        rank_b = rank_map[candidate_b.id]
        if rank_a < rank_b:
            return PairResult(winner=candidate_a, loser=candidate_b)
        if rank_b < rank_a:
            return PairResult(winner=candidate_b, loser=candidate_a)
        raise ValueError(
            f"Candidates {candidate_a} and {candidate_b} are tied at rank {rank_a}"
        )

    def tally_ballot(
        self,
        weighted_ballot: WeightedBallot,
        registry: PairTallyRegistry,
        agenda: Agenda,
    ) -> None:
        """
        Fold one weighted ballot into the registry.

        Every strictly ordered pair on the ballot credits ``count`` to
        (winner, loser) once. Tied pairs, and pairs with an unranked member
        under the skip policy, are left alone. Validation and registry lookups
        all happen before the first increment, so a rejected ballot leaves the
        registry unchanged.
        """
        rank_map = self.rank_map(weighted_ballot)

        agenda_ids = agenda.candidate_ids
        unknown = [cid for cid in rank_map if cid not in agenda_ids]
        if unknown:
            raise NotFoundError(
                f"Ballot ranks candidates not on the agenda: {unknown}"
            )

        if self.missing_candidates is MissingCandidatePolicy.ERROR:
            unranked = [c for c in agenda.candidates if c.id not in rank_map]
            if unranked:
                names = ", ".join(str(c) for c in unranked)
                raise UnrankedCandidateError(
                    f"Ballot leaves candidates unranked: {names}"
                )

        credited = []
        for outer, inner in ordered_pairs(agenda):
            outer_rank = rank_map.get(outer.id)
            inner_rank = rank_map.get(inner.id)
            if outer_rank is None or inner_rank is None or outer_rank == inner_rank:
                continue
            result = self.resolve_pair_winner(outer, inner, rank_map)
            # (inner, outer) resolves to the same winner; credit it only once
            if result.winner is outer:
                credited.append((result.winner, result.loser))

        registry.increment_many(credited, weighted_ballot.count)

    def calculate(
        self, agenda: Agenda, *weighted_ballots: WeightedBallot
    ) -> PairTallyRegistry:
        """
        Tally every weighted ballot into a fresh registry for the agenda.

        Returns:
            Registry whose tallies hold the pairwise support of every
            candidate over every other
        """
        logger.info(
            f"Tallying {len(weighted_ballots)} weighted ballots "
            f"over {len(agenda)} candidates"
        )
        registry = self.initialize(agenda)

        total_weight = 0
        for position, weighted_ballot in enumerate(weighted_ballots):
            try:
                self.tally_ballot(weighted_ballot, registry, agenda)
            except TallyError as e:
                logger.error(f"Rejected ballot {position}: {e}")
                raise
            total_weight += weighted_ballot.count
            logger.debug(
                f"Folded ballot {position} with weight {weighted_ballot.count}"
            )

        logger.info(f"Pairwise tally complete: {total_weight} ballots counted")
        return registry

    def calculate_batched(
        self,
        agenda: Agenda,
        weighted_ballots: Sequence[WeightedBallot],
        batch_size: int = 1000,
        max_workers: int = 4,
    ) -> PairTallyRegistry:
        """
        Tally ballots in batches on a thread pool and merge the results.

        Each batch is folded into its own registry, so workers never share
        counters. The merged registry equals ``calculate`` over the same
        ballots.

        Args:
            agenda: Candidates contesting the election
            weighted_ballots: Ballots to tally
            batch_size: Ballots per batch
            max_workers: Thread pool size
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {max_workers}")

        ballots = list(weighted_ballots)
        batches = [
            ballots[start : start + batch_size]
            for start in range(0, len(ballots), batch_size)
        ]
        if not batches:
            return self.initialize(agenda)
        if max_workers > len(batches):
            logger.warning(
                f"Requested {max_workers} workers for {len(batches)} batches; "
                f"using {len(batches)}"
            )
            max_workers = len(batches)

        logger.info(
            f"Tallying {len(ballots)} weighted ballots in {len(batches)} batches "
            f"with {max_workers} workers"
        )
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            partials = list(
                executor.map(lambda batch: self.calculate(agenda, *batch), batches)
            )
        return merge_registries(*partials)


def calculate(agenda: Agenda, *weighted_ballots: WeightedBallot) -> PairTallyRegistry:
    """Pairwise tally with the default engine (unranked candidates skipped)."""
    return TallyEngine().calculate(agenda, *weighted_ballots)
