import json

import pytest

from kartsim.catalog import (
    BlockWeight,
    TrackTemplate,
    decode_catalog,
    default_catalog,
    load_catalog,
    validate_track,
)
from kartsim.core.errors import ValidationError


def _track(*blocks: tuple[str, float], laps: int = 2) -> TrackTemplate:
    return TrackTemplate(
        id="custom",
        name="Custom",
        glyph="🛣️",
        laps=laps,
        blocks=tuple(BlockWeight(t, p) for t, p in blocks),  # pyright: ignore[reportArgumentType]
    )


def _raw_catalog(**overrides) -> dict:
    raw = {
        "participants": [
            {"id": "a", "name": "A", "glyph": "🅰️", "speed": 3, "handling": 3, "power": 3},
        ],
        "tracks": [
            {
                "id": "t",
                "name": "T",
                "glyph": "🛣️",
                "laps": 1,
                "blocks": [{"type": "straight", "probability": 1.0}],
            },
        ],
        "boosts": [
            {
                "id": "mushroom",
                "name": "Mushroom",
                "glyph": "🍄",
                "effect": "speed",
                "magnitude": 2,
                "duration": 1,
            },
        ],
    }
    raw.update(overrides)
    return raw


def test_default_catalog_contents():
    catalog = default_catalog()

    assert len(catalog.participants) == 8
    assert len(catalog.tracks) == 4
    assert len(catalog.boosts) == 6
    assert "mario" in catalog.participant_ids
    assert "rainbow-road" in catalog.track_ids


def test_default_catalog_tracks_are_valid():
    for track in default_catalog().tracks:
        validate_track(track)


def test_default_catalog_is_cached():
    assert default_catalog() is default_catalog()


def test_lookups():
    catalog = default_catalog()

    mario = catalog.get_participant("mario")
    assert mario is not None
    assert (mario.speed, mario.handling, mario.power) == (4, 3, 3)

    rainbow = catalog.get_track("rainbow-road")
    assert rainbow is not None
    assert rainbow.laps == 3

    assert catalog.get_participant("nobody") is None
    assert catalog.get_track("nowhere") is None


def test_validate_track_accepts_float_rounding():
    validate_track(_track(("straight", 0.1), ("curve", 0.2), ("confrontation", 0.7)))


@pytest.mark.parametrize(
    "track",
    [
        _track(("straight", 0.5), ("curve", 0.3)),
        _track(("straight", 0.8), ("curve", 0.4)),
        _track(("straight", 1.2), ("curve", -0.2)),
        _track(),
        _track(("straight", 1.0), laps=0),
    ],
)
def test_validate_track_rejects_bad_tracks(track):
    with pytest.raises(ValidationError):
        validate_track(track)


def test_decode_catalog_rejects_unknown_block_type():
    raw = _raw_catalog()
    raw["tracks"][0]["blocks"] = [{"type": "jump", "probability": 1.0}]

    with pytest.raises(ValidationError, match="Invalid catalog"):
        decode_catalog(json.dumps(raw))


def test_decode_catalog_rejects_non_positive_attribute():
    raw = _raw_catalog()
    raw["participants"][0]["power"] = 0

    with pytest.raises(ValidationError, match="power"):
        decode_catalog(json.dumps(raw))


def test_decode_catalog_requires_boosts():
    with pytest.raises(ValidationError, match="power-up"):
        decode_catalog(json.dumps(_raw_catalog(boosts=[])))


def test_load_catalog_from_path(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(_raw_catalog()), encoding="utf-8")

    catalog = load_catalog(path)

    assert catalog.participant_ids == ["a"]
    assert catalog.track_ids == ["t"]
    assert catalog.boosts[0].effect == "speed"
