from __future__ import annotations

import datetime
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from kartsim.core import LOGGER_NAME
from kartsim.core.errors import InvalidStateError, ValidationError
from kartsim.core.state import LogEntry, RaceRules
from kartsim.engine.logging import race_context

if TYPE_CHECKING:
    from kartsim.catalog import TrackTemplate
    from kartsim.core.state import Participant
    from kartsim.core.types import LogCategory, RaceStatus

MIN_PARTICIPANTS = 2

MEDALS = ("🥇", "🥈", "🥉")
FINISH_MARKER = "🏁"

# Shared by every race; per-race context travels in `extra`.
race_logger = logging.getLogger(LOGGER_NAME).getChild("race")

_LOG_LEVELS: dict[LogCategory, int] = {
    "system": logging.INFO,
    "action": logging.INFO,
    "result": logging.INFO,
}


def generate_race_id() -> str:
    return f"race_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def format_duration(elapsed: datetime.timedelta) -> str:
    total_seconds = int(elapsed.total_seconds())
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


@dataclass
class Race:
    """One competition on a track, from the starting grid to the final standings.

    Status only ever moves pending -> active -> completed. The round resolver is
    the only thing that mutates a race besides `finish()`.
    """

    track: TrackTemplate
    participants: list[Participant]
    rules: RaceRules = field(default_factory=RaceRules)
    id: str = field(default_factory=generate_race_id)
    verbose: bool = True

    current_round: int = field(init=False, default=0)
    status: RaceStatus = field(init=False, default="pending")
    winner: Participant | None = field(init=False, default=None)
    started_at: datetime.datetime | None = field(init=False, default=None)
    ended_at: datetime.datetime | None = field(init=False, default=None)
    log: list[LogEntry] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        if len(self.participants) < MIN_PARTICIPANTS:
            msg = f"A race needs at least {MIN_PARTICIPANTS} participants, got {len(self.participants)}"
            raise ValidationError(msg)

        for idx, participant in enumerate(self.participants):
            participant.reset_for_race()
            participant.position = idx + 1

    @property
    def max_rounds(self) -> int:
        return self.track.laps * self.rules.blocks_per_lap

    # --- Lifecycle ---
    def start(self) -> None:
        if self.status != "pending":
            msg = f"Race {self.id} was already started (status: {self.status})"
            raise InvalidStateError(msg)

        self.status = "active"
        self.started_at = _now()
        self.append_log("🏁 RACE STARTED!", "system")
        self.append_log(f"📍 Track: {self.track.glyph} {self.track.name}", "system")
        roster = ", ".join(str(p) for p in self.participants)
        self.append_log(f"👥 Participants: {roster}", "system")

    def is_finished(self) -> bool:
        # Nothing increments laps_completed yet, so only the round ceiling ends a race.
        return (
            self.status == "completed"
            or self.current_round >= self.max_rounds
            or any(p.laps_completed >= self.track.laps for p in self.participants)
        )

    def finish(self) -> None:
        if self.status == "completed":
            return

        self.status = "completed"
        self.ended_at = _now()

        # sort() is stable, so tied participants keep their previous order.
        self.participants.sort(key=lambda p: p.score, reverse=True)
        for idx, participant in enumerate(self.participants):
            participant.position = idx + 1

        self.winner = self.participants[0]
        self.append_log(f"🏆 WINNER: {self.winner}!", "system")
        self.append_log("📊 FINAL STANDINGS:", "system")
        for idx, participant in enumerate(self.participants):
            marker = MEDALS[idx] if idx < len(MEDALS) else FINISH_MARKER
            self.append_log(f"{marker} {ordinal(idx + 1)} place: {participant}", "result")

    def advance_round(self) -> None:
        if self.is_finished():
            self.finish()
            return

        self.current_round += 1
        for participant in self.participants:
            participant.tick_boosts()

    # --- Derived views ---
    def current_ranking(self) -> list[Participant]:
        return sorted(self.participants, key=lambda p: p.score, reverse=True)

    def progress_percent(self) -> float:
        return min(100.0, self.current_round / self.max_rounds * 100)

    def elapsed(self) -> datetime.timedelta:
        if self.started_at is None:
            return datetime.timedelta(0)
        end = self.ended_at or _now()
        return end - self.started_at

    def formatted_elapsed(self) -> str:
        return format_duration(self.elapsed())

    def get_participant(self, participant_id: str) -> Participant | None:
        return next((p for p in self.participants if p.id == participant_id), None)

    # --- Event log ---
    def append_log(self, message: str, category: LogCategory = "action") -> LogEntry:
        entry = LogEntry(
            round=self.current_round,
            timestamp=_now(),
            message=message,
            category=category,
        )
        self.log.append(entry)
        self._log(_LOG_LEVELS[category], message)
        return entry

    def _log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        if not self.verbose:
            return
        kwargs.setdefault("extra", race_context(self))
        race_logger.log(level, msg, *args, **kwargs)


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"
