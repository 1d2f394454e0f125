"""Name keys and pairwise similarity for administrative unit names.

Source spreadsheets and the live store disagree on casing, punctuation and
spacing ("Itas/gadau" vs "Itas/Gadau", "Tafawa Balewa" vs "Tafawa-Balewa"),
so every comparison goes through one of the two keys below. Both fold
accented spellings ("Ìbàdàn") to ASCII first.

similarity() is a three-tier score:

  1.0   strict keys are equal
  0.85  one strict key contains the other ("Ekeremor" / "Ekeremor North")
  else  1 - edit distance / max(len) over the strict keys

Exact and containment matches must outrank near-miss spellings, which edit
distance alone does not guarantee.
"""
from __future__ import annotations

import re

from rapidfuzz.distance import Levenshtein
from unidecode import unidecode

# Empirical values; overridable from config/reconcile.yaml.
ACCEPT_FLOOR = 0.5
CONTAINMENT_SCORE = 0.85

_STRICT_STRIP = re.compile(r"[/\-\s(),.']+")
_SPACED_SEP = re.compile(r"[/\-]+")
_PARENTHETICAL = re.compile(r"\(.*?\)")
_WS = re.compile(r"\s+")


def strict_key(s: str | None) -> str:
    """ASCII-fold, lower-case and drop whitespace, hyphens, slashes and bracket punctuation."""
    return _STRICT_STRIP.sub("", unidecode(s or "").strip().lower())


def spaced_key(s: str | None) -> str:
    """Lower-case, turn separators into single spaces, drop parenthetical suffixes."""
    t = unidecode(s or "").strip().lower()
    t = _SPACED_SEP.sub(" ", t)
    t = _PARENTHETICAL.sub("", t)
    return _WS.sub(" ", t).strip()


def similarity(a: str | None, b: str | None, *, containment: float = CONTAINMENT_SCORE) -> float:
    na, nb = strict_key(a), strict_key(b)
    if na == nb:
        return 1.0
    if not na or not nb:
        return 0.0
    if na in nb or nb in na:
        return containment
    return 1.0 - Levenshtein.distance(na, nb) / max(len(na), len(nb))
