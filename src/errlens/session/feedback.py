"""Feedback Store - Append-only log of explanation ratings.

Durable layout: one JSON file holding an ordered list of record objects.

    [
      {"snippet_id": "snippet-1", "snippet_name": "list_index.py",
       "style": "pragmatic", "model": "llama3.2:latest",
       "answers": {"comprehensible": true, ...},
       "submitted_at": "2026-01-01T12:00:00+00:00"},
      ...
    ]

Every append is a read-modify-write of that file, written atomically. A
record is held in memory before the write is attempted, so a storage
failure never loses it; the next append (or flush) retries it. A file
that cannot be parsed is never overwritten.
"""

import csv
import io
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional

from errlens.catalog.snippets import ExplanationStyle
from errlens.errors import PersistFailed
from errlens.session.identity import Identity

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FeedbackQuestion:
    id: str
    question: str


FEEDBACK_QUESTIONS: tuple[FeedbackQuestion, ...] = (
    FeedbackQuestion("comprehensible", "Is the error message comprehensible?"),
    FeedbackQuestion("correct", "Is the error message correct in its explanation?"),
    FeedbackQuestion("improvement", "Is the error message an improvement over the standard one?"),
    FeedbackQuestion("hasHint", "Does the error message contain a hint for a possible fix?"),
    FeedbackQuestion("hintCorrect", "Is the error message hint actually correct?"),
)


def answer_problems(
    answers: Mapping[str, Any],
    questions: tuple[FeedbackQuestion, ...] = FEEDBACK_QUESTIONS,
) -> list[str]:
    """List what is wrong with a set of answers (empty list = complete and valid)."""
    problems = []
    known = {q.id for q in questions}
    for q in questions:
        if q.id not in answers:
            problems.append(f"missing answer for '{q.id}'")
        elif not isinstance(answers[q.id], bool):
            problems.append(f"answer for '{q.id}' must be yes/no")
    for key in answers:
        if key not in known:
            problems.append(f"unknown question '{key}'")
    return problems


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FeedbackRecord:
    """One feedback submission for one identity."""

    identity: Identity
    snippet_name: str
    answers: dict[str, bool]
    submitted_at: datetime

    def __post_init__(self):
        # Detach from the caller's dict
        object.__setattr__(self, "answers", dict(self.answers))

    def to_json(self) -> dict:
        return {
            "snippet_id": self.identity.snippet_id,
            "snippet_name": self.snippet_name,
            "style": self.identity.style.value,
            "model": self.identity.model,
            "answers": dict(self.answers),
            "submitted_at": self.submitted_at.isoformat(),
        }

    @staticmethod
    def from_json(data: dict) -> "FeedbackRecord":
        return FeedbackRecord(
            identity=Identity(
                snippet_id=data["snippet_id"],
                style=ExplanationStyle(data["style"]),
                model=data["model"],
            ),
            snippet_name=data["snippet_name"],
            answers={k: bool(v) for k, v in data["answers"].items()},
            submitted_at=datetime.fromisoformat(data["submitted_at"]),
        )


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

BASE_COLUMNS = ["snippet_id", "snippet_name", "style", "model", "submitted_at"]


def export_columns(records: list[FeedbackRecord]) -> list[str]:
    """Base columns, then the union of answer keys in first-seen order."""
    columns = list(BASE_COLUMNS)
    seen = set(columns)
    for record in records:
        for key in record.answers:
            if key not in seen:
                seen.add(key)
                columns.append(key)
    return columns


def records_to_csv(records: list[FeedbackRecord]) -> Optional[str]:
    """CSV text for records, or None when there are none."""
    if not records:
        return None

    columns = export_columns(records)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns, restval="", lineterminator="\n")
    writer.writeheader()
    for record in records:
        row: dict[str, str] = {
            "snippet_id": record.identity.snippet_id,
            "snippet_name": record.snippet_name,
            "style": record.identity.style.value,
            "model": record.identity.model,
            "submitted_at": record.submitted_at.isoformat(),
        }
        for key, value in record.answers.items():
            row[key] = "true" if value else "false"
        writer.writerow(row)
    return buffer.getvalue()


def parse_export(text: str) -> list[dict[str, Any]]:
    """
    Read an export back.

    Returns:
        One dict per row: the base columns as strings, plus an "answers"
        dict of question id → bool (blank cells omitted).
    """
    rows = []
    for raw in csv.DictReader(io.StringIO(text)):
        row: dict[str, Any] = {col: raw[col] for col in BASE_COLUMNS}
        row["answers"] = {
            key: value == "true"
            for key, value in raw.items()
            if key not in BASE_COLUMNS and value != ""
        }
        rows.append(row)
    return rows


def default_export_name(now: datetime) -> str:
    return f"feedback_{now.strftime('%Y%m%d_%H%M%S')}.csv"


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class FeedbackStore:
    """Append-only feedback log backed by a single JSON file.

    Pass path=None for a purely in-memory store.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else None
        self._records: list[FeedbackRecord] = []
        self._pending: list[FeedbackRecord] = []
        if self.path is not None:
            self._records = self._read_disk()
            logger.info("FeedbackStore loaded %d records from %s", len(self._records), self.path)

    @property
    def records(self) -> list[FeedbackRecord]:
        return list(self._records)

    @property
    def pending(self) -> list[FeedbackRecord]:
        """Records held in memory that have not reached disk yet."""
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._records)

    def append(self, record: FeedbackRecord) -> None:
        """
        Add a record and persist it.

        Raises:
            PersistFailed: Storage write failed; the record is kept in memory
                and will be retried on the next append or flush().
        """
        self._records.append(record)
        self._pending.append(record)
        self.flush()

    def flush(self) -> None:
        """Write any pending records to disk (no-op for in-memory stores)."""
        if self.path is None:
            self._pending.clear()
            return
        if not self._pending:
            return

        try:
            on_disk = self._read_raw()
            on_disk.extend(r.to_json() for r in self._pending)
            self._write_atomic(on_disk)
        except (OSError, ValueError) as e:
            logger.warning(
                "Could not persist %d feedback record(s) to %s: %s",
                len(self._pending), self.path, e,
            )
            raise PersistFailed(self.path, e) from e

        logger.info("Persisted %d feedback record(s) to %s", len(self._pending), self.path)
        self._pending.clear()

    def export_all(self) -> Optional[str]:
        """CSV of every record, or None when the store is empty."""
        return records_to_csv(self._records)

    def export_to(self, path: str | Path) -> Optional[Path]:
        """
        Write the CSV export to path.

        Returns:
            The written path, or None if there was nothing to export

        Raises:
            PersistFailed: The CSV file could not be written
        """
        text = self.export_all()
        if text is None:
            return None
        out = Path(path)
        try:
            out.write_text(text, encoding="utf-8", newline="")
        except OSError as e:
            logger.warning("Could not export feedback to %s: %s", out, e)
            raise PersistFailed(out, e) from e
        logger.info("Exported %d feedback record(s) to %s", len(self._records), out)
        return out

    # ── Disk helpers ───────────────────────────────────────────

    def _read_raw(self) -> list[dict]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{self.path} does not contain a list of records")
        return data

    def _read_disk(self) -> list[FeedbackRecord]:
        try:
            raw = self._read_raw()
            return [FeedbackRecord.from_json(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise PersistFailed(self.path, e) from e

    def _write_atomic(self, data: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
