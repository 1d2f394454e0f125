"""File-backed settings for a reconciliation run.

Defaults live in ``config/reconcile.yaml``; operators point
``ADMINREC_CONFIG`` at another file to override them, and ``ADMINREC_SOURCE``
at a different workbook. Every key is optional.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ruamel.yaml import YAML

from .dependents import LOCAL_UNIT, REGION, SUBREGION, LEVEL_ORDER
from .normalize import ACCEPT_FLOOR, CONTAINMENT_SCORE

ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = ROOT / "config" / "reconcile.yaml"
DEFAULT_SOURCE_PATH = ROOT / "data" / "nga_admin_boundaries.xlsx"


@dataclass(frozen=True)
class SheetSpec:
    sheet: str
    name_column: str
    code_column: str
    parent_column: Optional[str] = None


DEFAULT_SHEETS: Dict[str, SheetSpec] = {
    REGION: SheetSpec("nga_admin1", "adm1_name", "adm1_pcode"),
    SUBREGION: SheetSpec("nga_admin2", "adm2_name", "adm2_pcode", "adm1_pcode"),
    LOCAL_UNIT: SheetSpec("nga_admin3", "adm3_name", "adm3_pcode", "adm2_pcode"),
}


@dataclass(frozen=True)
class ReconcileConfig:
    source_path: Path = DEFAULT_SOURCE_PATH
    sheets: Mapping[str, SheetSpec] = field(default_factory=lambda: dict(DEFAULT_SHEETS))
    region_name_aliases: Mapping[str, str] = field(
        default_factory=lambda: {"FCT": "Federal Capital Territory"}
    )
    accept_floor: float = ACCEPT_FLOOR
    containment_score: float = CONTAINMENT_SCORE
    # level -> expected total; levels left out fall back to the source's own count
    expected_counts: Mapping[str, int] = field(default_factory=dict)


def load_yaml(path: Path) -> Any:
    yaml = YAML(typ="safe")
    with path.open("r", encoding="utf-8") as f:
        return yaml.load(f)


def _resolve_path(value: str | Path, base: Path) -> Path:
    p = Path(value)
    return p if p.is_absolute() else (base / p).resolve()


def _parse_sheets(raw: Mapping[str, Any]) -> Dict[str, SheetSpec]:
    sheets = dict(DEFAULT_SHEETS)
    for level, spec in (raw or {}).items():
        if level not in LEVEL_ORDER:
            raise ValueError(f"unknown level in sheets: {level!r}")
        base = DEFAULT_SHEETS[level]
        spec = spec or {}
        sheets[level] = SheetSpec(
            sheet=str(spec.get("sheet", base.sheet)),
            name_column=str(spec.get("name_column", base.name_column)),
            code_column=str(spec.get("code_column", base.code_column)),
            parent_column=spec.get("parent_column", base.parent_column),
        )
    return sheets


def _threshold(raw: Mapping[str, Any], key: str, default: float) -> float:
    value = float(raw.get(key, default))
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{key} must be within [0, 1], got {value}")
    return value


def load_config(path: Optional[str | Path] = None) -> ReconcileConfig:
    """Load settings from ``path``, ``$ADMINREC_CONFIG`` or the bundled default.

    An explicitly requested file must exist; the bundled default may be absent.
    """
    explicit = path or os.environ.get("ADMINREC_CONFIG")
    cfg_path = _resolve_path(explicit, ROOT) if explicit else DEFAULT_CONFIG_PATH
    raw: Dict[str, Any] = {}
    if cfg_path.is_file():
        raw = load_yaml(cfg_path) or {}
    elif explicit:
        raise FileNotFoundError(f"config file not found: {cfg_path}")

    source = os.environ.get("ADMINREC_SOURCE") or raw.get("source_path")
    expected = {}
    for level, n in (raw.get("expected_counts") or {}).items():
        if level not in LEVEL_ORDER:
            raise ValueError(f"unknown level in expected_counts: {level!r}")
        expected[level] = int(n)

    defaults = ReconcileConfig()
    return ReconcileConfig(
        source_path=_resolve_path(source, ROOT) if source else defaults.source_path,
        sheets=_parse_sheets(raw.get("sheets") or {}),
        region_name_aliases=dict(raw.get("region_name_aliases") or defaults.region_name_aliases),
        accept_floor=_threshold(raw, "accept_floor", ACCEPT_FLOOR),
        containment_score=_threshold(raw, "containment_score", CONTAINMENT_SCORE),
        expected_counts=expected,
    )
