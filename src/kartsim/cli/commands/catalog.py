"""CLI command listing the drivers, tracks and power-ups of the catalog."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path  # cappa needs this at runtime
from typing import TYPE_CHECKING, Annotated

import cappa
import msgspec
from rich.console import Console
from rich.table import Table

from kartsim.cli.converters import load_catalog_for, load_config
from kartsim.core.types import BLOCK_LABELS

if TYPE_CHECKING:
    from kartsim.catalog import Catalog


def render_catalog(console: Console, catalog: Catalog) -> None:
    drivers = Table(title="Drivers")
    for column in ("ID", "Driver", "Speed", "Handling", "Power", "Total", "Specialty"):
        drivers.add_column(column)
    for p in catalog.participants:
        drivers.add_row(
            p.id,
            f"{p.glyph} {p.name}",
            str(p.speed),
            str(p.handling),
            str(p.power),
            str(p.total_skill),
            p.specialty,
        )

    tracks = Table(title="Tracks")
    for column in ("ID", "Track", "Difficulty", "Laps", "Blocks"):
        tracks.add_column(column)
    for t in catalog.tracks:
        blocks = ", ".join(f"{BLOCK_LABELS[b.type]} {b.probability:.0%}" for b in t.blocks)
        tracks.add_row(t.id, f"{t.glyph} {t.name}", t.difficulty, str(t.laps), blocks)

    boosts = Table(title="Power-ups")
    for column in ("ID", "Power-up", "Effect", "Magnitude", "Rounds"):
        boosts.add_column(column)
    for b in catalog.boosts:
        boosts.add_row(b.id, f"{b.glyph} {b.name}", b.effect, f"{b.magnitude:+d}", str(b.duration))

    console.print(drivers)
    console.print(tracks)
    console.print(boosts)


@cappa.command(name="catalog", help="List available drivers, tracks and power-ups.")
@dataclass
class CatalogCommand:
    config_file: Annotated[
        Path | None,
        cappa.Arg(short="-c", long="--config", help="Path to TOML config file."),
    ] = None
    json: Annotated[
        bool,
        cappa.Arg(long="--json", help="Print the catalog as JSON."),
    ] = False

    def __call__(self) -> None:
        config = load_config(self.config_file)
        catalog = load_catalog_for(config)

        if self.json:
            _ = sys.stdout.write(msgspec.json.encode(catalog).decode("utf-8") + "\n")
            return

        render_catalog(Console(), catalog)
