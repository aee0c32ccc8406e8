"""CSV log of settled hands."""

import csv
import gzip
import json
import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Any, TextIO

from bjsim.game.events import EventEmitter, EventType, GameEvent
from bjsim.game.records import HandRecord

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_EVERY = 10000


def log_paths(path: str | Path, gzip_enabled: bool = False) -> tuple[Path, Path]:
    """
    Return the (temporary, final) paths for a log.

    ``hands.csv`` is written as ``hands_0.csv`` and renamed to
    ``hands_1.csv`` once complete; gzip adds ``.gz`` to both.
    """
    path = Path(path)
    suffix = path.suffix
    base = path.with_suffix("") if suffix else path
    temp = base.with_name(f"{base.name}_0{suffix}")
    final = base.with_name(f"{base.name}_1{suffix}")
    if gzip_enabled:
        temp = temp.with_name(temp.name + ".gz")
        final = final.with_name(final.name + ".gz")
    return temp, final


def format_value(value: Any) -> str:
    """Render a record field as a CSV cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    return str(value)


def record_row(record: HandRecord) -> dict[str, str]:
    """Flatten a hand record into CSV cells; the decision trace becomes JSON."""
    row = {}
    for column in HandRecord.columns():
        if column == "decision_trace":
            row[column] = json.dumps([entry.to_dict() for entry in record.decision_trace])
        else:
            row[column] = format_value(getattr(record, column))
    return row


class CsvHandLog:
    """
    Writes one CSV row per settled hand.

    Rows go to a temporary file that is renamed to its final name on
    ``close``, so a finished log is never confused with an interrupted one.
    """

    def __init__(
        self,
        path: str | Path,
        gzip_enabled: bool = False,
        flush_every: int = DEFAULT_FLUSH_EVERY,
    ) -> None:
        if flush_every < 1:
            raise ValueError("flush_every must be at least 1")
        self.temp_path, self.final_path = log_paths(path, gzip_enabled)
        self.gzip_enabled = gzip_enabled
        self.flush_every = flush_every
        self.rows_written = 0
        self._file: TextIO | None = None
        self._writer: csv.DictWriter | None = None

    def open(self) -> "CsvHandLog":
        if self._file is not None:
            return self
        if self.gzip_enabled:
            self._file = gzip.open(self.temp_path, "wt", newline="", encoding="utf-8")
        else:
            self._file = open(self.temp_path, "w", newline="", encoding="utf-8")
        self._writer = csv.DictWriter(self._file, fieldnames=HandRecord.columns())
        self._writer.writeheader()
        logger.debug("Writing hand log to %s", self.temp_path)
        return self

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def write(self, record: HandRecord) -> None:
        if self._writer is None:
            self.open()
        self._writer.writerow(record_row(record))  # type: ignore
        self.rows_written += 1
        if self.rows_written % self.flush_every == 0:
            self._file.flush()  # type: ignore

    def handle(self, event: GameEvent) -> None:
        """Event handler for settled hands."""
        self.write(event.data["record"])

    def attach(self, events: EventEmitter) -> None:
        """Subscribe to settled-hand events."""
        events.subscribe(self.handle, EventType.HAND_SETTLED)

    def close(self) -> Path:
        """Flush, close and move the log to its final path."""
        if self._file is None:
            self.open()
        self._file.close()  # type: ignore
        self._file = None
        self._writer = None
        os.replace(self.temp_path, self.final_path)
        logger.info("Wrote %d hands to %s", self.rows_written, self.final_path)
        return self.final_path

    def abort(self) -> None:
        """Close the file without renaming it, leaving the partial log behind."""
        if self._file is None:
            return
        self._file.close()
        self._file = None
        self._writer = None
        logger.warning("Run failed; partial hand log left at %s", self.temp_path)

    def __enter__(self) -> "CsvHandLog":
        return self.open()

    def __exit__(self, exc_type: Any, *exc_info: Any) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()
