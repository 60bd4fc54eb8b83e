"""Serializable snapshots of races handed out by the race service."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

import msgspec

from kartsim.catalog import TrackTemplate  # noqa: TC001 # msgspec needs this at runtime
from kartsim.core.types import (  # noqa: TC001
    BlockType,
    BoostEffect,
    ConfrontationOutcome,
    LogCategory,
    RaceStatus,
)

if TYPE_CHECKING:
    from kartsim.core.state import Participant
    from kartsim.engine.race import Race
    from kartsim.engine.resolver import RoundOutcome, TurnResult


class BoostView(msgspec.Struct, frozen=True):
    id: str
    name: str
    glyph: str
    effect: BoostEffect
    magnitude: int
    remaining_rounds: int


class TurnStatsView(msgspec.Struct, frozen=True):
    distance_traveled: int
    blocks_resolved: int
    boosts_consumed: int
    confrontations_won: int
    confrontations_lost: int


class ParticipantView(msgspec.Struct, frozen=True):
    id: str
    name: str
    glyph: str
    color: str
    speed: int
    handling: int
    power: int
    score: int
    position: int
    laps_completed: int
    stats: TurnStatsView
    boosts: tuple[BoostView, ...] = ()


class RankingEntry(msgspec.Struct, frozen=True):
    id: str
    name: str
    glyph: str
    score: int
    position: int


class LogEntryView(msgspec.Struct, frozen=True):
    round: int
    timestamp: datetime.datetime
    message: str
    category: LogCategory


class RaceStats(msgspec.Struct, frozen=True):
    progress: float
    elapsed: str
    participant_count: int
    winner: str | None
    ranking: tuple[RankingEntry, ...]


class RaceView(msgspec.Struct, frozen=True):
    id: str
    track: TrackTemplate
    participants: tuple[ParticipantView, ...]
    current_round: int
    max_rounds: int
    status: RaceStatus
    winner: ParticipantView | None
    started_at: datetime.datetime | None
    ended_at: datetime.datetime | None
    stats: RaceStats
    log: tuple[LogEntryView, ...]


class TurnView(msgspec.Struct, frozen=True):
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


class RoundResult(msgspec.Struct, frozen=True):
    finished: bool
    round: int
    block: BlockType | None
    turns: tuple[TurnView, ...]
    ranking: tuple[RankingEntry, ...]
    race: RaceView


class RoundSummary(msgspec.Struct, frozen=True):
    round: int
    block: BlockType | None
    turns: tuple[TurnView, ...]


class FinalResult(msgspec.Struct, frozen=True):
    race_id: str
    winner: ParticipantView | None
    final_ranking: tuple[RankingEntry, ...]
    log: tuple[LogEntryView, ...]
    stats: RaceStats
    race: RaceView
    rounds: tuple[RoundSummary, ...] = ()


# --- Builders ---
def participant_view(participant: Participant) -> ParticipantView:
    stats = participant.stats
    return ParticipantView(
        id=participant.id,
        name=participant.name,
        glyph=participant.glyph,
        color=participant.color,
        speed=participant.speed,
        handling=participant.handling,
        power=participant.power,
        score=participant.score,
        position=participant.position,
        laps_completed=participant.laps_completed,
        stats=TurnStatsView(
            distance_traveled=stats.distance_traveled,
            blocks_resolved=stats.blocks_resolved,
            boosts_consumed=stats.boosts_consumed,
            confrontations_won=stats.confrontations_won,
            confrontations_lost=stats.confrontations_lost,
        ),
        boosts=tuple(
            BoostView(
                id=b.template_id,
                name=b.name,
                glyph=b.glyph,
                effect=b.effect,
                magnitude=b.magnitude,
                remaining_rounds=b.remaining_rounds,
            )
            for b in participant.boosts
        ),
    )


def ranking_view(ranking: list[Participant]) -> tuple[RankingEntry, ...]:
    return tuple(
        RankingEntry(id=p.id, name=p.name, glyph=p.glyph, score=p.score, position=p.position)
        for p in ranking
    )


def race_stats(race: Race) -> RaceStats:
    return RaceStats(
        progress=race.progress_percent(),
        elapsed=race.formatted_elapsed(),
        participant_count=len(race.participants),
        winner=race.winner.name if race.winner is not None else None,
        ranking=ranking_view(race.current_ranking()),
    )


def race_view(race: Race) -> RaceView:
    return RaceView(
        id=race.id,
        track=race.track,
        participants=tuple(participant_view(p) for p in race.participants),
        current_round=race.current_round,
        max_rounds=race.max_rounds,
        status=race.status,
        winner=participant_view(race.winner) if race.winner is not None else None,
        started_at=race.started_at,
        ended_at=race.ended_at,
        stats=race_stats(race),
        log=tuple(
            LogEntryView(
                round=e.round,
                timestamp=e.timestamp,
                message=e.message,
                category=e.category,
            )
            for e in race.log
        ),
    )


def turn_view(turn: TurnResult) -> TurnView:
    return TurnView(
        participant_id=turn.participant_id,
        participant_name=turn.participant_name,
        block=turn.block,
        dice=turn.dice,
        points=turn.points,
        total_score=turn.total_score,
        distance=turn.distance,
        message=turn.message,
        opponent_id=turn.opponent_id,
        outcome=turn.outcome,
    )


def round_result(outcome: RoundOutcome, race: Race) -> RoundResult:
    return RoundResult(
        finished=outcome.finished,
        round=outcome.round,
        block=outcome.block,
        turns=tuple(turn_view(t) for t in outcome.turns),
        ranking=ranking_view(outcome.ranking),
        race=race_view(race),
    )


def final_result(race: Race, outcomes: list[RoundOutcome] | None = None) -> FinalResult:
    view = race_view(race)
    return FinalResult(
        race_id=race.id,
        winner=view.winner,
        final_ranking=ranking_view(race.current_ranking()),
        log=view.log,
        stats=view.stats,
        rounds=tuple(
            RoundSummary(
                round=o.round,
                block=o.block,
                turns=tuple(turn_view(t) for t in o.turns),
            )
            for o in outcomes or ()
            if o.block is not None
        ),
        race=view,
    )


def to_json(view: msgspec.Struct) -> bytes:
    return msgspec.json.encode(view)
