"""CLI command for repeated simulations of the same race setup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path  # cappa needs this at runtime
from typing import Annotated

import cappa
from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from kartsim.cli.converters import (
    load_catalog_for,
    load_config,
    resolve_participant_ids,
    resolve_track_id,
)
from kartsim.core import LOGGER_NAME
from kartsim.core.errors import KartSimError
from kartsim.simulation.batch import aggregate_participant_stats, run_batch
from kartsim.simulation.service import RaceService

DEFAULT_RUNS = 100


@cappa.command(
    name="batch",
    help="Simulate the same race many times and report win rates per driver.",
)
@dataclass
class BatchCommand:
    participants: Annotated[
        list[str],
        cappa.Arg(
            short="-p",
            long="--participants",
            num_args=-1,
            help="Space separated list of driver ids.",
        ),
    ]
    track: Annotated[
        str,
        cappa.Arg(short="-t", long="--track", help="Track id."),
    ]
    runs: Annotated[
        int,
        cappa.Arg(short="-n", long="--runs", help="Number of races to simulate."),
    ] = DEFAULT_RUNS
    config_file: Annotated[
        Path | None,
        cappa.Arg(short="-c", long="--config", help="Path to TOML config file."),
    ] = None
    output: Annotated[
        Path | None,
        cappa.Arg(short="-o", long="--output", help="Write per-race results to this parquet file."),
    ] = None

    def __call__(self) -> int:
        if self.runs < 1:
            msg = f"Runs must be >= 1, got {self.runs}"
            raise cappa.Exit(msg, code=1)

        # Per-round logs would drown the progress bar
        logging.getLogger(LOGGER_NAME).setLevel(logging.CRITICAL)

        config = load_config(self.config_file)
        catalog = load_catalog_for(config)
        participant_ids = resolve_participant_ids(self.participants, catalog)
        track_id = resolve_track_id(self.track, catalog)

        service = RaceService(catalog=catalog, rules=config.to_rules(), verbose=False)
        try:
            batch = run_batch(service, participant_ids, track_id, self.runs)
        except KartSimError as e:
            raise cappa.Exit(str(e), code=1)  # noqa: B904

        df_results = batch.to_frame()
        if self.output is not None:
            df_results.write_parquet(self.output)
            tqdm.write(f"💾 Wrote {df_results.height} rows to {self.output}")

        summary = aggregate_participant_stats(df_results)

        table = Table(title=f"{batch.runs} races on {track_id} ({batch.execution_time_ms:.0f}ms)")
        for column in summary.columns:
            table.add_column(column)
        for row in summary.iter_rows():
            table.add_row(*(str(v) for v in row))
        Console().print(table)
        return 0
