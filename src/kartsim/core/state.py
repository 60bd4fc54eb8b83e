from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kartsim.core.boosts import Boost, Invincibility

if TYPE_CHECKING:
    import datetime

    from kartsim.catalog import ParticipantTemplate
    from kartsim.core.types import BoostEffect, LogCategory


@dataclass(slots=True)
class RaceRules:
    """Tunable constants of the race engine."""

    blocks_per_lap: int = 5
    boost_chance: float = 0.3
    dice_sides: int = 6
    # Seconds to pause between rounds of a full simulation.
    round_delay: float = 0.0


@dataclass(slots=True)
class TurnStats:
    distance_traveled: int = 0
    blocks_resolved: int = 0
    boosts_consumed: int = 0
    confrontations_won: int = 0
    confrontations_lost: int = 0


@dataclass(frozen=True, slots=True)
class LogEntry:
    round: int
    timestamp: datetime.datetime
    message: str
    category: LogCategory


@dataclass(slots=True)
class Participant:
    id: str
    name: str
    glyph: str
    speed: int
    handling: int
    power: int
    description: str = ""
    specialty: str = ""
    color: str = "#FFFFFF"

    # Race-scoped state, cleared by reset_for_race()
    score: int = 0
    position: int = 0
    laps_completed: int = 0
    boosts: list[Boost] = field(default_factory=list)
    stats: TurnStats = field(default_factory=TurnStats)

    @classmethod
    def from_template(cls, template: ParticipantTemplate) -> Participant:
        return cls(
            id=template.id,
            name=template.name,
            glyph=template.glyph,
            speed=template.speed,
            handling=template.handling,
            power=template.power,
            description=template.description,
            specialty=template.specialty,
            color=template.color,
        )

    @property
    def repr(self) -> str:
        return f"{self.glyph} {self.name}"

    @property
    def total_skill(self) -> int:
        return self.speed + self.handling + self.power

    def __str__(self) -> str:
        return f"{self.repr} ({self.score} pts)"

    # --- Attributes ---
    def _effective(self, base: int, effect: BoostEffect) -> int:
        bonus = sum(b.magnitude for b in self.boosts if b.effect == effect)
        return max(1, base + bonus)

    def effective_speed(self) -> int:
        return self._effective(self.speed, "speed")

    def effective_handling(self) -> int:
        return self._effective(self.handling, "handling")

    def effective_power(self) -> int:
        return self._effective(self.power, "power")

    def is_invincible(self) -> bool:
        return any(isinstance(b, Invincibility) for b in self.boosts)

    # --- Boost lifecycle ---
    def apply_boost(self, boost: Boost) -> None:
        self.boosts.append(boost)
        self.stats.boosts_consumed += 1

    def tick_boosts(self) -> None:
        """Count every active boost down by one round and drop the expired ones."""
        for boost in self.boosts:
            boost.tick()
        self.boosts = [b for b in self.boosts if not b.expired]

    # --- Scoring ---
    def add_score(self, points: int) -> None:
        if points < 0:
            msg = f"Cannot add negative points ({points}) to {self.repr}"
            raise ValueError(msg)
        self.score += points

    def reset_for_race(self) -> None:
        self.score = 0
        self.position = 0
        self.laps_completed = 0
        self.boosts = []
        self.stats = TurnStats()
