"""
Election data model for pairwise tallying.

Candidates, the agenda they contest, and the ranked ballots cast over them.
"""

from .models import Agenda, Ballot, Candidate, WeightedBallot, compress_ballots

__all__ = [
    "Candidate",
    "Agenda",
    "Ballot",
    "WeightedBallot",
    "compress_ballots",
]
