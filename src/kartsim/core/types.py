from __future__ import annotations

from typing import Literal

BlockType = Literal["straight", "curve", "confrontation"]

BoostEffect = Literal["speed", "handling", "power", "invincibility"]

RaceStatus = Literal["pending", "active", "completed"]

LogCategory = Literal["system", "action", "result"]

ConfrontationOutcome = Literal["win", "loss", "draw"]

# Fallback for the block draw when rounding leaves the cumulative sum short of 1.
DEFAULT_BLOCK: BlockType = "straight"

BLOCK_LABELS: dict[BlockType, str] = {
    "straight": "STRAIGHT",
    "curve": "CURVE",
    "confrontation": "CONFRONTATION",
}
