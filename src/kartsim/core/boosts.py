from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from kartsim.catalog import BoostTemplate
    from kartsim.core.types import BoostEffect


@dataclass(slots=True)
class Boost:
    """A power-up held by a participant for a limited number of rounds.

    Each effect kind is its own subclass so the payload shape stays fixed.
    Boosts of the same kind stack additively while they are active.
    """

    effect: ClassVar[BoostEffect]

    template_id: str
    name: str
    glyph: str
    magnitude: int
    remaining_rounds: int

    @property
    def expired(self) -> bool:
        return self.remaining_rounds <= 0

    def tick(self) -> None:
        self.remaining_rounds -= 1

    @property
    def repr(self) -> str:
        return f"{self.glyph} {self.name}"

    @classmethod
    def from_template(cls, template: BoostTemplate) -> Boost:
        boost_cls = BOOST_CLASSES[template.effect]
        return boost_cls(
            template_id=template.id,
            name=template.name,
            glyph=template.glyph,
            magnitude=template.magnitude,
            remaining_rounds=template.duration,
        )


@dataclass(slots=True)
class SpeedBoost(Boost):
    effect: ClassVar[BoostEffect] = "speed"


@dataclass(slots=True)
class HandlingBoost(Boost):
    effect: ClassVar[BoostEffect] = "handling"


@dataclass(slots=True)
class PowerBoost(Boost):
    effect: ClassVar[BoostEffect] = "power"


@dataclass(slots=True)
class Invincibility(Boost):
    effect: ClassVar[BoostEffect] = "invincibility"


BOOST_CLASSES: dict[BoostEffect, type[Boost]] = {
    cls.effect: cls for cls in (SpeedBoost, HandlingBoost, PowerBoost, Invincibility)
}
