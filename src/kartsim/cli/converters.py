from __future__ import annotations

import difflib
from typing import TYPE_CHECKING

import cappa

from kartsim.catalog import load_catalog
from kartsim.core.errors import ValidationError
from kartsim.simulation.config import SimulationConfig

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from kartsim.catalog import Catalog


def _normalize(s: str) -> str:
    """Normalize string: remove whitespace, dots, dashes and convert to lowercase."""
    return s.strip().replace(" ", "").replace(".", "").replace("-", "").replace("_", "").lower()


def resolve_id(value: str, known: Iterable[str], kind: str) -> str:
    """
    Resolve a catalog id using fuzzy matching.
    Input "Donkey Kong" matches "donkey-kong".
    """
    canonical = list(known)
    lookup_map = {_normalize(k): k for k in canonical}

    normalized_input = _normalize(value)
    if normalized_input in lookup_map:
        return lookup_map[normalized_input]

    matches = difflib.get_close_matches(value, canonical, n=3, cutoff=0.5)
    msg = f"{kind} '{value}' not found."
    if matches:
        msg += f" Did you mean: {', '.join(matches)}?"

    raise cappa.Exit(msg, code=1)


def resolve_participant_ids(values: list[str], catalog: Catalog) -> list[str]:
    return [resolve_id(v, catalog.participant_ids, "Participant") for v in values]


def resolve_track_id(value: str, catalog: Catalog) -> str:
    return resolve_id(value, catalog.track_ids, "Track")


def load_config(path: Path | None) -> SimulationConfig:
    if path is None:
        return SimulationConfig()
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise cappa.Exit(msg, code=1)
    try:
        return SimulationConfig.from_toml(path)
    except Exception as e:  # noqa: BLE001
        msg = f"Invalid TOML config: {e}"
        raise cappa.Exit(msg, code=1)  # noqa: B904


def load_catalog_for(config: SimulationConfig) -> Catalog:
    try:
        return load_catalog(config.catalog)
    except (OSError, ValidationError) as e:
        msg = f"Could not load catalog: {e}"
        raise cappa.Exit(msg, code=1)  # noqa: B904
