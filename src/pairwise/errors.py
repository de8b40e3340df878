"""Errors raised when ballots or registries break the pairwise tally contract."""


class TallyError(Exception):
    """Base class for violations of the pairwise tally contract."""


class DuplicateKeyError(TallyError, ValueError):
    """An ordered candidate pair was registered twice."""


class NotFoundError(TallyError, LookupError):
    """A candidate pair, or a candidate, is unknown to the registry or agenda."""


class UnrankedCandidateError(NotFoundError):
    """A strict comparison needed a candidate the ballot does not rank."""


class DuplicateCandidateError(TallyError, ValueError):
    """A ballot ranks the same candidate more than once."""
