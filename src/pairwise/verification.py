"""
Verification Module

Audits finished pairwise tally registries for complete pair coverage and
counts consistent with the ballots that produced them.
"""

import logging
from typing import Dict, Iterable, Optional

from election.models import Agenda, WeightedBallot
from pairwise.calculator import ordered_pairs
from pairwise.registry import PairTallyRegistry

logger = logging.getLogger(__name__)


class RegistryVerifier:
    """
    Audits a pairwise tally registry against the agenda it was built for.
    """

    def __init__(self, agenda: Agenda):
        """
        Initialize verifier.

        Args:
            agenda: Candidates the registry is expected to cover
        """
        self.agenda = agenda

    def verify(
        self,
        registry: PairTallyRegistry,
        weighted_ballots: Optional[Iterable[WeightedBallot]] = None,
    ) -> Dict:
        """
        Check the structural invariants of a registry.

        Args:
            registry: Registry to audit
            weighted_ballots: Ballots that were tallied; when given, no pair's
                two directions may together exceed their total weight

        Returns:
            Verification report dictionary
        """
        logger.info(f"Verifying registry of {len(registry)} pairs")

        expected_keys = [(a.id, b.id) for a, b in ordered_pairs(self.agenda)]
        expected = set(expected_keys)
        actual = {tally.key for tally in registry}

        missing_pairs = [key for key in expected_keys if key not in actual]
        unexpected_pairs = sorted(
            (key for key in actual if key not in expected), key=repr
        )
        self_pairs = [key for key in actual if key[0] == key[1]]
        negative_values = [tally.key for tally in registry if tally.value < 0]

        total_weight = None
        overweight_pairs = []
        if weighted_ballots is not None:
            total_weight = sum(ballot.count for ballot in weighted_ballots)
            values = {tally.key: tally.value for tally in registry}
            for winner_id, loser_id in expected_keys:
                forward = values.get((winner_id, loser_id), 0)
                backward = values.get((loser_id, winner_id), 0)
                if forward + backward > total_weight:
                    overweight_pairs.append((winner_id, loser_id))

        n = len(self.agenda)
        report = {
            "expected_entries": n * (n - 1),
            "actual_entries": len(registry),
            "entry_count_matches": len(registry) == n * (n - 1),
            "missing_pairs": missing_pairs,
            "unexpected_pairs": unexpected_pairs,
            "self_pairs": self_pairs,
            "negative_values": negative_values,
            "total_weight": total_weight,
            "overweight_pairs": overweight_pairs,
        }
        report["verification_passed"] = (
            report["entry_count_matches"]
            and not missing_pairs
            and not unexpected_pairs
            and not self_pairs
            and not negative_values
            and not overweight_pairs
        )

        if not report["verification_passed"]:
            logger.warning("Registry verification found discrepancies")
        return report

    def generate_verification_report(self, verification_results: Dict) -> str:
        """
        Generate a human-readable verification report.

        Args:
            verification_results: Results from verify()

        Returns:
            Formatted verification report string
        """
        report = []
        report.append("=" * 60)
        report.append("PAIRWISE TALLY VERIFICATION REPORT")
        report.append("=" * 60)

        if verification_results["verification_passed"]:
            report.append("✅ VERIFICATION PASSED - Registry is complete and consistent")
        else:
            report.append("❌ VERIFICATION FAILED - Discrepancies found")

        report.append("")
        report.append("PAIR COVERAGE:")
        report.append(
            f"Expected entries: {verification_results['expected_entries']}"
        )
        report.append(f"Actual entries: {verification_results['actual_entries']}")

        for label, key in [
            ("Missing pairs", "missing_pairs"),
            ("Unexpected pairs", "unexpected_pairs"),
            ("Self pairs", "self_pairs"),
            ("Negative values", "negative_values"),
            ("Pairs exceeding ballot weight", "overweight_pairs"),
        ]:
            if verification_results[key]:
                pairs = ", ".join(
                    f"{winner}>{loser}" for winner, loser in verification_results[key]
                )
                report.append(f"{label}: {pairs}")

        if verification_results["total_weight"] is not None:
            report.append("")
            report.append(f"Total ballot weight: {verification_results['total_weight']}")

        return "\n".join(report)
