from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kartsim.core import LOGGER_NAME
from kartsim.core.boosts import Boost
from kartsim.core.errors import SimulationCancelled
from kartsim.core.state import RaceRules
from kartsim.core.types import BLOCK_LABELS, DEFAULT_BLOCK

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kartsim.catalog import BoostTemplate, TrackTemplate
    from kartsim.core.state import Participant
    from kartsim.core.types import BlockType, ConfrontationOutcome
    from kartsim.engine.race import Race

logger = logging.getLogger(LOGGER_NAME)


@dataclass(frozen=True, slots=True)
class TurnResult:
    """What happened to one participant on one block."""

    participant_id: str
    participant_name: str
    block: BlockType
    dice: tuple[int, int]
    points: int
    total_score: int
    distance: int
    message: str
    opponent_id: str | None = None
    outcome: ConfrontationOutcome | None = None


@dataclass(frozen=True, slots=True)
class BoostGrant:
    participant_id: str
    boost_id: str
    boost_name: str


@dataclass(frozen=True, slots=True)
class RoundOutcome:
    finished: bool
    round: int
    block: BlockType | None
    turns: list[TurnResult] = field(default_factory=list)
    grants: list[BoostGrant] = field(default_factory=list)
    ranking: list[Participant] = field(default_factory=list)


@dataclass
class RoundResolver:
    """Resolves rounds of a race: block draw, turns, power-ups and countdown.

    `rng` only needs `random()` and `randint(a, b)`, so tests can script it.
    """

    boosts: Sequence[BoostTemplate]
    rng: random.Random = field(default_factory=random.Random)
    rules: RaceRules = field(default_factory=RaceRules)

    # --- Randomness ---
    def roll_dice(self) -> int:
        return self.rng.randint(1, self.rules.dice_sides)

    def draw_block(self, track: TrackTemplate) -> BlockType:
        """Pick a block by walking the cumulative probabilities of the track."""
        draw = self.rng.random()
        cumulative = 0.0
        for block in track.blocks:
            cumulative += block.probability
            if draw <= cumulative:
                return block.type
        return DEFAULT_BLOCK

    def draw_boost(self) -> Boost | None:
        if not self.boosts or self.rng.random() >= self.rules.boost_chance:
            return None
        template = self.boosts[self.rng.randint(0, len(self.boosts) - 1)]
        return Boost.from_template(template)

    def pick_opponent(self, participant: Participant, race: Race) -> Participant:
        opponents = [p for p in race.participants if p is not participant]
        return opponents[self.rng.randint(0, len(opponents) - 1)]

    # --- Round ---
    def resolve_round(self, race: Race) -> RoundOutcome:
        if race.is_finished():
            race.finish()
            return RoundOutcome(
                finished=True,
                round=race.current_round,
                block=None,
                ranking=race.current_ranking(),
            )

        block = self.draw_block(race.track)
        round_number = race.current_round + 1
        race.append_log(
            f"🎲 === ROUND {round_number} - BLOCK: {BLOCK_LABELS[block]} ===",
            "system",
        )

        turns = [self.resolve_turn(participant, block, race) for participant in race.participants]
        grants = self.distribute_boosts(race)

        race.advance_round()

        return RoundOutcome(
            finished=race.is_finished(),
            round=round_number,
            block=block,
            turns=turns,
            grants=grants,
            ranking=race.current_ranking(),
        )

    def resolve_turn(self, participant: Participant, block: BlockType, race: Race) -> TurnResult:
        d1 = self.roll_dice()
        d2 = self.roll_dice()

        opponent: Participant | None = None
        outcome: ConfrontationOutcome | None = None
        distance = 0

        match block:
            case "straight":
                speed = participant.effective_speed()
                points = d1 + speed
                distance = points
                message = f"{participant.repr} rolled {d1} + SPEED({speed}) = {points} points"
            case "curve":
                handling = participant.effective_handling()
                points = d1 + handling
                distance = points
                message = f"{participant.repr} rolled {d1} + HANDLING({handling}) = {points} points"
            case "confrontation":
                opponent = self.pick_opponent(participant, race)
                points, outcome, message = self.resolve_confrontation(participant, opponent, d1, d2)
            case _:
                msg = f"Unknown block type: {block}"
                raise ValueError(msg)

        points = max(0, points)
        participant.add_score(points)
        participant.stats.blocks_resolved += 1
        participant.stats.distance_traveled += distance
        race.append_log(message, "action")

        return TurnResult(
            participant_id=participant.id,
            participant_name=participant.name,
            block=block,
            dice=(d1, d2),
            points=points,
            total_score=participant.score,
            distance=distance,
            message=message,
            opponent_id=opponent.id if opponent is not None else None,
            outcome=outcome,
        )

    def resolve_confrontation(
        self,
        participant: Participant,
        opponent: Participant,
        own_roll: int,
        opponent_roll: int,
    ) -> tuple[int, ConfrontationOutcome, str]:
        """Compare power totals; only this participant's side is scored here."""
        own_total = own_roll + participant.effective_power()
        opponent_total = opponent_roll + opponent.effective_power()
        versus = f"({own_total} vs {opponent_total})"

        if own_total > opponent_total:
            points = own_total
            participant.stats.confrontations_won += 1
            return (
                points,
                "win",
                f"{participant.repr} beat {opponent.repr} in a confrontation! {versus} = +{points} points",
            )
        if own_total < opponent_total:
            participant.stats.confrontations_lost += 1
            return (
                0,
                "loss",
                f"{participant.repr} lost to {opponent.repr} in a confrontation! {versus} = 0 points",
            )

        points = own_total // 2
        return (
            points,
            "draw",
            f"{participant.repr} tied with {opponent.repr} in a confrontation! {versus} = +{points} points",
        )

    def distribute_boosts(self, race: Race) -> list[BoostGrant]:
        grants: list[BoostGrant] = []
        for participant in race.participants:
            boost = self.draw_boost()
            if boost is None:
                continue
            participant.apply_boost(boost)
            race.append_log(f"✨ {participant.repr} picked up {boost.repr}!", "system")
            grants.append(BoostGrant(participant.id, boost.template_id, boost.name))
        return grants

    # --- Full race ---
    def simulate_to_completion(
        self,
        race: Race,
        *,
        round_delay: float | None = None,
        cancel: threading.Event | None = None,
    ) -> list[RoundOutcome]:
        """Run rounds until the race is over, pausing `round_delay` seconds between them.

        A pending race is started first; an active one is resumed. Setting `cancel`
        stops the loop before the next round and leaves the race active.
        """
        delay = self.rules.round_delay if round_delay is None else round_delay
        waiter = cancel if cancel is not None else threading.Event()

        if race.status == "pending":
            race.start()

        outcomes: list[RoundOutcome] = []
        while True:
            if waiter.is_set():
                logger.warning(f"Simulation of {race.id} cancelled at round {race.current_round}")
                msg = f"Simulation of race {race.id} was cancelled at round {race.current_round}"
                raise SimulationCancelled(msg)

            outcome = self.resolve_round(race)
            outcomes.append(outcome)
            if outcome.finished:
                break

            if delay > 0:
                _ = waiter.wait(delay)

        race.finish()
        return outcomes
