from __future__ import annotations

import logging
import re
import sys
from typing import TYPE_CHECKING

if sys.version_info >= (3, 12):
    from typing import override
else:
    from typing_extensions import override

from rich.highlighter import Highlighter
from rich.logging import RichHandler

from kartsim.core import LOGGER_NAME

if TYPE_CHECKING:
    from rich.text import Text

    from kartsim.engine.race import Race

# --- PATTERNS ---
BLOCK_PATTERN = re.compile(r"\b(STRAIGHT|CURVE|CONFRONTATION)\b")
POINTS_PATTERN = re.compile(r"[+=] ?\+?\d+ points?\b")
DICE_PATTERN = re.compile(r"\brolled \d+\b")
ATTRIBUTE_PATTERN = re.compile(r"\b(SPEED|HANDLING|POWER)\(\d+\)")

COLOR = {
    "block": "bold #d670d6",  # magenta
    "points": "bold #23d18b",  # light green
    "dice_roll": "bold #f5f543",  # yellow
    "attribute": "bold #29b8db",  # cyan
    "win": "bold green",
    "loss": "bold red",
    "draw": "bold #ffaf00",  # orange
    "winner": "bold yellow",
    "prefix": "grey50",
}


def race_context(race: Race) -> dict[str, object]:
    """Per-race fields passed as `extra` so the formatter can prefix the record."""
    return {
        "race_id": race.id,
        "race_round": race.current_round,
        "race_status": race.status,
    }


class RichMarkupFormatter(logging.Formatter):
    @override
    def format(self, record: logging.LogRecord) -> str:
        race_id = getattr(record, "race_id", "_")
        race_round = getattr(record, "race_round", 0)

        # Only the random tail of the id is useful on screen.
        short_id = race_id.rsplit("_", 1)[-1]
        prefix = f"{short_id} R{race_round}"
        message = record.getMessage()

        return f"[{COLOR['prefix']}]{prefix:<14}[/{COLOR['prefix']}]  {message}"


class RaceLogHighlighter(Highlighter):
    @override
    def highlight(self, text: Text) -> None:
        text.highlight_regex(BLOCK_PATTERN, COLOR["block"])
        text.highlight_regex(POINTS_PATTERN, COLOR["points"])
        text.highlight_regex(DICE_PATTERN, COLOR["dice_roll"])
        text.highlight_regex(ATTRIBUTE_PATTERN, COLOR["attribute"])

        text.highlight_regex(r"\bbeat\b", COLOR["win"])
        text.highlight_regex(r"\blost to\b", COLOR["loss"])
        text.highlight_regex(r"\btied with\b", COLOR["draw"])
        text.highlight_regex(r"\bWINNER\b", COLOR["winner"])


def configure_logging(level: int | str = logging.INFO) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    handler = RichHandler(
        markup=True,
        show_path=False,
        show_time=False,
        highlighter=RaceLogHighlighter(),
    )
    handler.setFormatter(RichMarkupFormatter())
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
