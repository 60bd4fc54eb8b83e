"""Repeated race simulations and per-driver aggregation."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import polars as pl
from tqdm import tqdm

from kartsim.core import LOGGER_NAME
from kartsim.simulation.service import RaceService

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kartsim.simulation.views import FinalResult

logger = logging.getLogger(LOGGER_NAME)


@dataclass(slots=True)
class ParticipantResult:
    """Result of one driver in one simulated race."""

    race_index: int
    participant_id: str
    participant_name: str
    final_position: int
    score: int
    distance_traveled: int
    boosts_consumed: int
    confrontations_won: int
    confrontations_lost: int


@dataclass(slots=True)
class BatchResult:
    runs: int
    execution_time_ms: float
    results: list[ParticipantResult]

    def to_frame(self) -> pl.DataFrame:
        return pl.DataFrame(
            [
                {
                    "race_index": r.race_index,
                    "participant_id": r.participant_id,
                    "participant_name": r.participant_name,
                    "final_position": r.final_position,
                    "score": r.score,
                    "distance_traveled": r.distance_traveled,
                    "boosts_consumed": r.boosts_consumed,
                    "confrontations_won": r.confrontations_won,
                    "confrontations_lost": r.confrontations_lost,
                }
                for r in self.results
            ],
        )


def collect_results(race_index: int, final: FinalResult) -> list[ParticipantResult]:
    return [
        ParticipantResult(
            race_index=race_index,
            participant_id=p.id,
            participant_name=p.name,
            final_position=p.position,
            score=p.score,
            distance_traveled=p.stats.distance_traveled,
            boosts_consumed=p.stats.boosts_consumed,
            confrontations_won=p.stats.confrontations_won,
            confrontations_lost=p.stats.confrontations_lost,
        )
        for p in final.race.participants
    ]


def run_batch(
    service: RaceService,
    participant_ids: Sequence[str],
    track_id: str,
    runs: int,
    *,
    progress: bool = True,
) -> BatchResult:
    """Simulate `runs` races with the same roster and track, without pauses."""
    start_time = time.perf_counter()
    results: list[ParticipantResult] = []

    with tqdm(
        desc="Simulating",
        unit="race",
        total=runs,
        dynamic_ncols=True,
        disable=not progress,
    ) as pbar:
        for race_index in range(runs):
            view = service.create_race(participant_ids, track_id)
            final = service.simulate_to_completion(view.id, round_delay=0)
            results.extend(collect_results(race_index, final))
            pbar.update(1)

    execution_time_ms = (time.perf_counter() - start_time) * 1000
    logger.debug(f"Batch of {runs} races on {track_id} took {execution_time_ms:.2f}ms")
    return BatchResult(runs=runs, execution_time_ms=execution_time_ms, results=results)


def aggregate_participant_stats(df_results: pl.DataFrame) -> pl.DataFrame:
    """
    Aggregates per-race results into statistics for each driver.
    Returns one row per driver, best win rate first.
    """
    return (
        df_results.group_by(["participant_id", "participant_name"])
        .agg(
            [
                pl.len().alias("races"),
                (pl.col("final_position").eq(1).sum() / pl.len()).round(3).alias("winrate"),
                pl.col("final_position").mean().round(2).alias("avg_position"),
                pl.col("score").mean().round(2).alias("avg_score"),
                pl.col("distance_traveled").mean().round(2).alias("avg_distance"),
                pl.col("confrontations_won").sum().alias("confrontations_won"),
                pl.col("confrontations_lost").sum().alias("confrontations_lost"),
            ],
        )
        .sort(["winrate", "avg_score"], descending=True)
    )
