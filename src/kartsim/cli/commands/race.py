"""CLI command for creating and running a single race."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path  # cappa needs this at runtime
from typing import TYPE_CHECKING, Annotated

import cappa

from kartsim.cli.converters import (
    load_catalog_for,
    load_config,
    resolve_participant_ids,
    resolve_track_id,
)
from kartsim.core.errors import KartSimError
from kartsim.engine.logging import configure_logging
from kartsim.engine.race import FINISH_MARKER, MEDALS
from kartsim.simulation.service import RaceService
from kartsim.simulation.views import to_json

if TYPE_CHECKING:
    from kartsim.simulation.config import SimulationConfig
    from kartsim.simulation.views import RaceView

logger = logging.getLogger(__name__)

DEFAULT_PARTICIPANTS = ["mario", "luigi", "peach"]
DEFAULT_TRACK = "mario-circuit"


def run_stepwise(service: RaceService, race_id: str) -> RaceView:
    """Resolve one round per call until the service archives the race."""
    while True:
        result = service.resolve_one_round(race_id)
        if result.finished:
            return result.race


def print_summary(view: RaceView, log_tail: int) -> None:
    """Print winner, standings, stats and the tail of the race log."""
    logger.info("-" * 20)
    if view.winner is not None:
        winner = view.winner
        logger.info(f"🏆 Winner: {winner.glyph} {winner.name} ({winner.score} points)")

    logger.info("📊 Final standings:")
    for idx, p in enumerate(view.participants):
        marker = MEDALS[idx] if idx < len(MEDALS) else FINISH_MARKER
        logger.info(f"{marker} {idx + 1}. {p.glyph} {p.name}: {p.score} points")

    logger.info("📈 Stats:")
    logger.info(f"⏱️  Duration: {view.stats.elapsed}")
    logger.info(f"🔄 Rounds: {view.current_round}/{view.max_rounds}")
    logger.info(f"👥 Participants: {view.stats.participant_count}")

    if log_tail > 0:
        logger.info(f"📝 Race log (last {log_tail} entries):")
        for entry in view.log[-log_tail:]:
            logger.info(f"R{entry.round} {entry.message}")


def print_history(service: RaceService) -> None:
    history = service.list_history()
    if not history:
        logger.info("📚 No races in the history yet.")
        return

    logger.info("📚 Race history:")
    for idx, past in enumerate(history):
        winner = f"{past.winner.glyph} {past.winner.name}" if past.winner is not None else "-"
        ended = past.ended_at.strftime("%Y-%m-%d %H:%M:%S") if past.ended_at is not None else "-"
        logger.info(f"{idx + 1}. Winner: {winner} on {past.track.name} - {ended}")


def run_console_race(
    config: SimulationConfig,
    service: RaceService,
    participant_ids: list[str],
    track_id: str,
    *,
    step: bool = False,
    log_tail: int = 5,
) -> RaceView:
    created = service.create_race(participant_ids, track_id)
    logger.info(f"✅ Race created: {created.id}")

    try:
        if step:
            view = run_stepwise(service, created.id)
        else:
            final = service.simulate_to_completion(created.id, round_delay=config.round_delay)
            view = final.race
    except Exception as e:
        # Expected failures are reported by the caller without a traceback.
        if not isinstance(e, KartSimError):
            logger.exception("Race Error")
        raise

    print_summary(view, log_tail)
    print_history(service)
    return view


@cappa.command(
    name="race",
    help="Create a race and run it to the finish, printing the log as it goes.",
)
@dataclass
class RaceCommand:
    participants: Annotated[
        list[str] | None,
        cappa.Arg(
            short="-p",
            long="--participants",
            num_args=-1,
            help="Space separated list of driver ids.",
        ),
    ] = None
    track: Annotated[
        str | None,
        cappa.Arg(short="-t", long="--track", help="Track id."),
    ] = None
    config_file: Annotated[
        Path | None,
        cappa.Arg(short="-c", long="--config", help="Path to TOML config file."),
    ] = None
    delay: Annotated[
        float | None,
        cappa.Arg(short="-d", long="--delay", help="Seconds to pause between rounds."),
    ] = None
    step: Annotated[
        bool,
        cappa.Arg(long="--step", help="Resolve the race one round at a time."),
    ] = False
    log_tail: Annotated[
        int,
        cappa.Arg(long="--log-tail", help="Race log entries to print at the end."),
    ] = 5
    json: Annotated[
        bool,
        cappa.Arg(long="--json", help="Print the archived race as JSON instead of logs."),
    ] = False

    def __call__(self) -> None:
        config = load_config(self.config_file)
        if self.delay is not None:
            if self.delay < 0:
                msg = f"Delay must be >= 0, got {self.delay}"
                raise cappa.Exit(msg, code=1)
            config.round_delay = self.delay

        catalog = load_catalog_for(config)
        participant_ids = resolve_participant_ids(self.participants or DEFAULT_PARTICIPANTS, catalog)
        track_id = resolve_track_id(self.track or DEFAULT_TRACK, catalog)

        if not self.json:
            configure_logging(config.log_level)

        service = RaceService(
            catalog=catalog,
            rules=config.to_rules(),
            verbose=not self.json,
            history_limit=config.history_limit,
        )
        try:
            view = run_console_race(
                config,
                service,
                participant_ids,
                track_id,
                step=self.step,
                log_tail=0 if self.json else self.log_tail,
            )
        except KartSimError as e:
            raise cappa.Exit(str(e), code=1)  # noqa: B904

        if self.json:
            _ = sys.stdout.write(to_json(view).decode("utf-8") + "\n")
