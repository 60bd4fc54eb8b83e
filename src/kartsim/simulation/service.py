"""Session-scoped race registry: the entry point for anything driving races."""

from __future__ import annotations

import logging
import itertools
import random
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kartsim.catalog import default_catalog
from kartsim.core import LOGGER_NAME
from kartsim.core.errors import NotFoundError, ValidationError
from kartsim.core.state import Participant, RaceRules
from kartsim.engine.race import MIN_PARTICIPANTS, Race
from kartsim.engine.resolver import RoundResolver
from kartsim.simulation.views import (
    FinalResult,
    RaceView,
    RoundResult,
    final_result,
    race_view,
    round_result,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kartsim.catalog import BoostTemplate, Catalog, ParticipantTemplate, TrackTemplate

logger = logging.getLogger(LOGGER_NAME)

DEFAULT_HISTORY_LIMIT = 20


@dataclass
class RaceService:
    """Owns the active races of one session and the archive of finished ones.

    Races are inserted on creation and removed (then archived) on completion.
    Each race has its own lock so two callers never resolve it concurrently.
    """

    catalog: Catalog = field(default_factory=default_catalog)
    rules: RaceRules = field(default_factory=RaceRules)
    rng: random.Random = field(default_factory=random.Random)
    verbose: bool = True
    history_limit: int = DEFAULT_HISTORY_LIMIT

    active: dict[str, Race] = field(init=False, default_factory=dict)
    history: deque[RaceView] = field(init=False)
    _race_locks: dict[str, threading.Lock] = field(init=False, default_factory=dict)
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock)
    resolver: RoundResolver = field(init=False)

    def __post_init__(self) -> None:
        self.resolver = RoundResolver(boosts=self.catalog.boosts, rng=self.rng, rules=self.rules)
        # Oldest archived races fall off once history_limit is reached.
        self.history = deque(maxlen=max(0, self.history_limit))

    # --- Catalog ---
    def list_participant_templates(self) -> list[ParticipantTemplate]:
        return list(self.catalog.participants)

    def list_track_templates(self) -> list[TrackTemplate]:
        return list(self.catalog.tracks)

    def list_boost_templates(self) -> list[BoostTemplate]:
        return list(self.catalog.boosts)

    # --- Races ---
    def create_race(self, participant_ids: Sequence[str], track_id: str) -> RaceView:
        if len(participant_ids) < MIN_PARTICIPANTS:
            msg = f"At least {MIN_PARTICIPANTS} participants are required, got {len(participant_ids)}"
            raise ValidationError(msg)

        duplicates = sorted({pid for pid in participant_ids if participant_ids.count(pid) > 1})
        if duplicates:
            msg = f"Participants can only enter once: {', '.join(duplicates)}"
            raise ValidationError(msg)

        participants: list[Participant] = []
        for participant_id in participant_ids:
            template = self.catalog.get_participant(participant_id)
            if template is None:
                msg = f"Participant not found: {participant_id}"
                raise ValidationError(msg)
            participants.append(Participant.from_template(template))

        track = self.catalog.get_track(track_id)
        if track is None:
            msg = f"Track not found: {track_id}"
            raise ValidationError(msg)

        race = Race(track=track, participants=participants, rules=self.rules, verbose=self.verbose)
        with self._lock:
            self.active[race.id] = race
            self._race_locks[race.id] = threading.Lock()

        logger.debug(f"Created {race.id} on {track.id} with {', '.join(participant_ids)}")
        return race_view(race)

    def get_race_snapshot(self, race_id: str) -> RaceView:
        race, race_lock = self._lookup(race_id)
        with race_lock:
            return race_view(race)

    def resolve_one_round(self, race_id: str) -> RoundResult:
        race, race_lock = self._lookup(race_id)
        with race_lock:
            self._ensure_active(race_id)
            if race.status == "pending":
                race.start()

            outcome = self.resolver.resolve_round(race)
            if outcome.finished:
                race.finish()
            result = round_result(outcome, race)

            if outcome.finished:
                self._archive(race, result.race)
        return result

    def simulate_to_completion(
        self,
        race_id: str,
        *,
        round_delay: float | None = None,
        cancel: threading.Event | None = None,
    ) -> FinalResult:
        race, race_lock = self._lookup(race_id)
        with race_lock:
            self._ensure_active(race_id)
            outcomes = self.resolver.simulate_to_completion(race, round_delay=round_delay, cancel=cancel)
            result = final_result(race, outcomes)
            self._archive(race, result.race)
        return result

    def list_history(self, limit: int | None = None) -> list[RaceView]:
        """Archived races, most recent first."""
        if limit is None:
            limit = self.history_limit
        with self._lock:
            return list(itertools.islice(self.history, max(0, limit)))

    # --- Internals ---
    def _lookup(self, race_id: str) -> tuple[Race, threading.Lock]:
        with self._lock:
            race = self.active.get(race_id)
            if race is None:
                raise NotFoundError(race_id)
            return race, self._race_locks[race_id]

    def _ensure_active(self, race_id: str) -> None:
        # Another caller may have archived the race while we waited for its lock.
        with self._lock:
            if race_id not in self.active:
                raise NotFoundError(race_id)

    def _archive(self, race: Race, view: RaceView) -> None:
        with self._lock:
            _ = self.active.pop(race.id, None)
            _ = self._race_locks.pop(race.id, None)
            self.history.appendleft(view)
        winner = race.winner.repr if race.winner is not None else "nobody"
        logger.info(f"Archived {race.id}: {winner} won after {race.current_round} rounds")
