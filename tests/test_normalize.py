"""Unit tests for name keys and the similarity scorer (no database)."""
from __future__ import annotations

import itertools
import sys
import unittest
from pathlib import Path

_REPO = Path(__file__).resolve().parents[1]
if str(_REPO) not in sys.path:
    sys.path.insert(0, str(_REPO))

from rapidfuzz.distance import Levenshtein  # noqa: E402

from hierarchy.normalize import CONTAINMENT_SCORE, similarity, spaced_key, strict_key  # noqa: E402

NAMES = [
    "Ekeremor", "Ekeremor North", "Kolokuma/Opokuma", "Kolokuma Opokuma",
    "Bursari", "Bursuari", "Itas/gadau", "Itas/Gadau", "Tafawa-Balewa",
    "Ife North (Central)", "Abuja Municipal", "", "A",
]


# ── strict_key / spaced_key ─────────────────────────────────────────────────


class TestStrictKey(unittest.TestCase):
    def test_drops_case_and_separators(self):
        self.assertEqual(strict_key("Kolokuma/Opokuma"), "kolokumaopokuma")
        self.assertEqual(strict_key("Tafawa-Balewa"), "tafawabalewa")
        self.assertEqual(strict_key("  Tafawa Balewa "), "tafawabalewa")

    def test_keeps_parenthetical_text(self):
        self.assertEqual(strict_key("Ife North (Central)"), "ifenorthcentral")

    def test_accents_folded(self):
        self.assertEqual(strict_key("Ìbàdàn North"), strict_key("Ibadan North"))
        self.assertEqual(spaced_key("Ọ̀yọ́ East"), "oyo east")

    def test_none_and_empty(self):
        self.assertEqual(strict_key(None), "")
        self.assertEqual(strict_key(" - / "), "")


class TestSpacedKey(unittest.TestCase):
    def test_separators_become_spaces(self):
        self.assertEqual(spaced_key("Kolokuma/Opokuma"), "kolokuma opokuma")
        self.assertEqual(spaced_key("Tafawa--Balewa"), "tafawa balewa")

    def test_parenthetical_suffix_removed(self):
        self.assertEqual(spaced_key("Ife-North (Central)"), "ife north")

    def test_whitespace_collapsed(self):
        self.assertEqual(spaced_key("  Abuja    Municipal "), "abuja municipal")


# ── edit-distance tier ──────────────────────────────────────────────────────


class TestEditDistanceTier(unittest.TestCase):
    def test_score_follows_levenshtein_over_strict_keys(self):
        pairs = [
            ("Bursari", "Bursuari"), ("Kolokuma/Opokuma", "Kolokuma Opakuma"),
            ("Abaji", "Abadji"), ("Sagbama", "Southern Ijaw"),
        ]
        for a, b in pairs:
            with self.subTest(a=a, b=b):
                na, nb = strict_key(a), strict_key(b)
                expected = 1 - Levenshtein.distance(na, nb) / max(len(na), len(nb))
                self.assertAlmostEqual(similarity(a, b), expected)

    def test_unit_cost_edits(self):
        self.assertEqual(Levenshtein.distance("bursari", "bursuari"), 1)
        self.assertAlmostEqual(similarity("Abaji", "Abadji"), 1 - 1 / 6)
        self.assertAlmostEqual(similarity("Ogbia", "Ogbla"), 0.8)


# ── similarity ──────────────────────────────────────────────────────────────


class TestSimilarity(unittest.TestCase):
    def test_exact_after_normalization(self):
        self.assertEqual(similarity("Itas/gadau", "Itas/Gadau"), 1.0)
        self.assertEqual(similarity("Tafawa Balewa", "Tafawa-Balewa"), 1.0)

    def test_containment_tier(self):
        self.assertEqual(similarity("Ekeremor", "Ekeremor North"), CONTAINMENT_SCORE)
        self.assertEqual(similarity("Ekeremor North", "Ekeremor"), CONTAINMENT_SCORE)

    def test_containment_score_is_configurable(self):
        self.assertEqual(similarity("Ekeremor", "Ekeremor North", containment=0.9), 0.9)

    def test_near_miss_between_containment_and_exact(self):
        score = similarity("Bursari", "Bursuari")
        self.assertAlmostEqual(score, 1 - 1 / 8)
        self.assertGreater(score, CONTAINMENT_SCORE)
        self.assertLess(score, 1.0)

    def test_empty_against_non_empty_is_zero(self):
        self.assertEqual(similarity("", "Ekeremor"), 0.0)
        self.assertEqual(similarity(None, "Ekeremor"), 0.0)

    def test_two_empty_names_are_equal(self):
        self.assertEqual(similarity("", None), 1.0)
        self.assertEqual(similarity(" - ", ""), 1.0)

    def test_unrelated_names_score_low(self):
        self.assertLess(similarity("Abuja Municipal", "Kolokuma/Opokuma"), 0.5)

    def test_symmetry_and_bounds(self):
        for a, b in itertools.product(NAMES, repeat=2):
            with self.subTest(a=a, b=b):
                s = similarity(a, b)
                self.assertEqual(s, similarity(b, a))
                self.assertGreaterEqual(s, 0.0)
                self.assertLessEqual(s, 1.0)

    def test_identity(self):
        for a in NAMES:
            with self.subTest(a=a):
                self.assertEqual(similarity(a, a), 1.0)


if __name__ == "__main__":
    unittest.main()
