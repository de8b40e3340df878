"""
Shared pytest configuration and fixtures for the pairwise tally engine.

This module provides common test fixtures and utilities used across
all test modules.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from election.models import Agenda, Ballot, Candidate, WeightedBallot  # noqa: E402
from pairwise.calculator import TallyEngine  # noqa: E402


@pytest.fixture
def alice():
    return Candidate("A", "Alice")


@pytest.fixture
def bob():
    return Candidate("B", "Bob")


@pytest.fixture
def carol():
    return Candidate("C", "Carol")


@pytest.fixture
def dave():
    return Candidate("D", "Dave")


@pytest.fixture
def agenda(alice, bob, carol):
    """Provide the three-candidate agenda Alice, Bob, Carol."""
    return Agenda([alice, bob, carol])


@pytest.fixture
def four_agenda(alice, bob, carol, dave):
    return Agenda([alice, bob, carol, dave])


@pytest.fixture
def engine():
    return TallyEngine()


@pytest.fixture
def sample_ballots(alice, bob, carol):
    """Provide sample weighted ballots for testing."""
    return [
        # Alice > Bob > Carol, three voters
        WeightedBallot(Ballot([alice, bob, carol]), 3),
        # Bob > Alice, Carol unranked
        WeightedBallot(Ballot([bob, alice]), 2),
        # Carol > (Alice = Bob)
        WeightedBallot(Ballot([[carol], [alice, bob]]), 4),
    ]


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (multiple components together)",
    )
    config.addinivalue_line(
        "markers",
        "golden: marks tests as golden dataset validation (hand-computed results)",
    )
    config.addinivalue_line(
        "markers", "invariant: marks tests as mathematical invariant validation"
    )
    config.addinivalue_line(
        "markers", "smoke: marks tests as smoke tests (basic functionality check)"
    )
    config.addinivalue_line(
        "markers", "critical: marks tests whose failure means wrong election counts"
    )
