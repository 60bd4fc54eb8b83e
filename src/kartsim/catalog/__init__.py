"""Read-only catalog of drivers, tracks and power-ups shipped with the package."""

from __future__ import annotations

import functools
import math
from importlib.resources import files
from pathlib import Path
from typing import get_args

import msgspec

from kartsim.core.errors import ValidationError
from kartsim.core.types import BlockType, BoostEffect

INTERNAL_CATALOG_PATH = files("kartsim.data").joinpath("catalog.json")

PROBABILITY_TOLERANCE = 1e-6


class ParticipantTemplate(msgspec.Struct, frozen=True):
    id: str
    name: str
    glyph: str
    speed: int
    handling: int
    power: int
    description: str = ""
    specialty: str = ""
    color: str = "#FFFFFF"

    @property
    def total_skill(self) -> int:
        return self.speed + self.handling + self.power


class BlockWeight(msgspec.Struct, frozen=True):
    type: BlockType
    probability: float


class TrackTemplate(msgspec.Struct, frozen=True):
    id: str
    name: str
    glyph: str
    laps: int
    blocks: tuple[BlockWeight, ...]
    difficulty: str = ""
    description: str = ""


class BoostTemplate(msgspec.Struct, frozen=True):
    id: str
    name: str
    glyph: str
    effect: BoostEffect
    magnitude: int
    duration: int
    description: str = ""


class Catalog(msgspec.Struct, frozen=True):
    participants: tuple[ParticipantTemplate, ...]
    tracks: tuple[TrackTemplate, ...]
    boosts: tuple[BoostTemplate, ...]

    def get_participant(self, participant_id: str) -> ParticipantTemplate | None:
        return next((p for p in self.participants if p.id == participant_id), None)

    def get_track(self, track_id: str) -> TrackTemplate | None:
        return next((t for t in self.tracks if t.id == track_id), None)

    @property
    def participant_ids(self) -> list[str]:
        return [p.id for p in self.participants]

    @property
    def track_ids(self) -> list[str]:
        return [t.id for t in self.tracks]


def validate_track(track: TrackTemplate) -> None:
    """Reject tracks the round resolver cannot draw blocks from."""
    if track.laps < 1:
        msg = f"Track '{track.id}' must have at least one lap, got {track.laps}"
        raise ValidationError(msg)
    if not track.blocks:
        msg = f"Track '{track.id}' has no blocks"
        raise ValidationError(msg)

    known = set(get_args(BlockType))
    for block in track.blocks:
        if block.type not in known:
            msg = f"Track '{track.id}' has unknown block type '{block.type}'"
            raise ValidationError(msg)
        if block.probability < 0:
            msg = f"Track '{track.id}' has a negative probability for '{block.type}'"
            raise ValidationError(msg)

    total = math.fsum(b.probability for b in track.blocks)
    if abs(total - 1.0) > PROBABILITY_TOLERANCE:
        msg = f"Block probabilities of track '{track.id}' sum to {total}, expected 1"
        raise ValidationError(msg)


def validate_participant(template: ParticipantTemplate) -> None:
    for attr in ("speed", "handling", "power"):
        if getattr(template, attr) < 1:
            msg = f"Participant '{template.id}' needs a positive {attr}"
            raise ValidationError(msg)


def decode_catalog(raw: bytes | str) -> Catalog:
    try:
        catalog = msgspec.json.decode(raw, type=Catalog)
    except msgspec.DecodeError as e:
        msg = f"Invalid catalog: {e}"
        raise ValidationError(msg) from e

    for template in catalog.participants:
        validate_participant(template)
    for track in catalog.tracks:
        validate_track(track)
    if not catalog.boosts:
        msg = "Catalog must define at least one power-up"
        raise ValidationError(msg)
    return catalog


def load_catalog(path: Path | str | None = None) -> Catalog:
    """Load a catalog from `path`, or the one bundled with the package."""
    if path is None:
        return decode_catalog(INTERNAL_CATALOG_PATH.read_bytes())
    return decode_catalog(Path(path).read_bytes())


@functools.cache
def default_catalog() -> Catalog:
    return load_catalog()
