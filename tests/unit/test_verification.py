"""
Unit tests for registry verification.
"""

import pytest

from election.models import Agenda, Ballot, WeightedBallot
from pairwise.calculator import TallyEngine
from pairwise.registry import PairTally, PairTallyRegistry
from pairwise.verification import RegistryVerifier


@pytest.fixture
def verifier(agenda):
    return RegistryVerifier(agenda)


@pytest.mark.unit
class TestRegistryVerifier:
    def test_fresh_registry_passes(self, verifier, engine, agenda):
        results = verifier.verify(engine.initialize(agenda))

        assert results["verification_passed"]
        assert results["expected_entries"] == 6
        assert results["actual_entries"] == 6
        assert results["total_weight"] is None

    def test_tallied_registry_passes_with_ballots(
        self, verifier, engine, agenda, sample_ballots
    ):
        registry = engine.calculate(agenda, *sample_ballots)
        results = verifier.verify(registry, sample_ballots)

        assert results["verification_passed"]
        assert results["total_weight"] == 9
        assert results["overweight_pairs"] == []

    def test_missing_pairs_reported(self, verifier, alice, bob):
        registry = PairTallyRegistry()
        registry.register(PairTally(alice, bob))

        results = verifier.verify(registry)

        assert not results["verification_passed"]
        assert not results["entry_count_matches"]
        assert ("B", "A") in results["missing_pairs"]
        assert len(results["missing_pairs"]) == 5

    def test_unexpected_pairs_reported(self, engine, agenda, four_agenda):
        registry = engine.initialize(four_agenda)
        results = RegistryVerifier(agenda).verify(registry)

        assert not results["verification_passed"]
        assert ("A", "D") in results["unexpected_pairs"]

    def test_overweight_pairs_reported(self, verifier, engine, agenda, alice, bob):
        registry = engine.initialize(agenda)
        registry.increment(alice, bob, 3)
        registry.increment(bob, alice, 2)

        results = verifier.verify(registry, [WeightedBallot(Ballot([alice, bob]), 3)])

        assert not results["verification_passed"]
        assert ("A", "B") in results["overweight_pairs"]
        assert ("B", "A") in results["overweight_pairs"]

    def test_report_text(self, verifier, engine, agenda, sample_ballots):
        registry = engine.calculate(agenda, *sample_ballots)
        report = verifier.generate_verification_report(
            verifier.verify(registry, sample_ballots)
        )

        assert "VERIFICATION PASSED" in report
        assert "Expected entries: 6" in report
        assert "Total ballot weight: 9" in report

    def test_report_lists_discrepancies(self, verifier, alice, bob):
        registry = PairTallyRegistry()
        registry.register(PairTally(alice, bob))
        report = verifier.generate_verification_report(verifier.verify(registry))

        assert "VERIFICATION FAILED" in report
        assert "Missing pairs: A>C" in report

    def test_empty_agenda(self):
        results = RegistryVerifier(Agenda([])).verify(TallyEngine().initialize(Agenda([])))
        assert results["verification_passed"]
        assert results["expected_entries"] == 0
