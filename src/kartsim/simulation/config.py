"""Configuration schema for races and batch simulations using msgspec."""

from __future__ import annotations

from pathlib import Path

import msgspec

from kartsim.core.state import RaceRules


class SimulationConfig(msgspec.Struct, forbid_unknown_fields=True):
    """
    TOML-backed configuration for the race service and the CLI.

    CLI flags override values loaded from file, which override these defaults.
    """

    round_delay: float = 0.0
    boost_chance: float = 0.3
    blocks_per_lap: int = 5
    history_limit: int = 20

    # Optional custom catalog JSON replacing the bundled one
    catalog: str | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.round_delay < 0:
            msg = f"round_delay must be >= 0, got {self.round_delay}"
            raise ValueError(msg)
        if not 0.0 <= self.boost_chance <= 1.0:
            msg = f"boost_chance must be within [0, 1], got {self.boost_chance}"
            raise ValueError(msg)
        if self.blocks_per_lap < 1:
            msg = f"blocks_per_lap must be >= 1, got {self.blocks_per_lap}"
            raise ValueError(msg)

    @classmethod
    def from_toml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a TOML file path."""
        with Path(path).open("rb") as f:
            return msgspec.toml.decode(f.read(), type=cls)

    def to_rules(self) -> RaceRules:
        return RaceRules(
            blocks_per_lap=self.blocks_per_lap,
            boost_chance=self.boost_chance,
            round_delay=self.round_delay,
        )
