"""Persistence for user feedback on generated plans.

The primary store keeps records in a single JSON file under
``{root}/evaluations.json``. When a write to it fails, the recorder keeps
the record in an in-memory store instead, so the user still gets an
acknowledgement. Simulation correctness never depends on either store.
"""

from __future__ import annotations

import json
import logging
import threading
import time
import uuid
from collections import Counter
from pathlib import Path
from typing import Any

from workcell.api.schemas import EvaluationRecord, EvaluationSummary, RecordResult
from workcell.errors import RecorderError

logger = logging.getLogger(__name__)

# Maximum records kept per store to prevent unbounded file growth.
_MAX_STORED_RECORDS = 1000


class EvaluationStore:
    """Evaluation persistence backed by a JSON file.

    Thread-safe via a lock.

    Args:
        root: Base directory for evaluation data. Created on first write.
    """

    source = "file"

    def __init__(self, root: Path) -> None:
        self._root = root
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._root / "evaluations.json"

    def add(self, record: EvaluationRecord) -> None:
        """Append *record* to the file.

        Raises:
            RecorderError: If the file cannot be read or written.
        """
        with self._lock:
            records = self._load()
            records.append(record.model_dump(by_alias=True))
            if len(records) > _MAX_STORED_RECORDS:
                records = records[-_MAX_STORED_RECORDS:]
            try:
                self._save(records)
            except OSError as e:
                raise RecorderError(f"Could not write {self.path}: {e}") from e

    def list(self) -> list[EvaluationRecord]:  # noqa: A003
        """Return stored records, oldest first. An unreadable file yields none."""
        with self._lock:
            try:
                raw = self._load()
            except RecorderError as e:
                logger.warning("%s", e)
                return []
        records: list[EvaluationRecord] = []
        for entry in raw:
            try:
                records.append(EvaluationRecord.model_validate(entry))
            except ValueError:
                logger.warning("Skipping malformed evaluation entry in %s", self.path)
        return records

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _load(self) -> list[dict[str, Any]]:
        """Load the JSON list, returning an empty list if missing or corrupt.

        Raises:
            RecorderError: If the file exists but cannot be read.
        """
        if self.path.exists():
            try:
                text = self.path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise RecorderError(f"Could not read {self.path}: {e}") from e
            try:
                data = json.loads(text)
                if isinstance(data, list):
                    return data
            except json.JSONDecodeError:
                pass
            logger.warning("Corrupt evaluations file %s, resetting", self.path)
        return []

    def _save(self, records: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(records, indent=2) + "\n")


class InMemoryEvaluationStore:
    """Process-lifetime fallback store."""

    source = "in-memory"

    def __init__(self) -> None:
        self._records: list[EvaluationRecord] = []
        self._lock = threading.Lock()

    def add(self, record: EvaluationRecord) -> None:
        with self._lock:
            self._records.append(record)
            del self._records[:-_MAX_STORED_RECORDS]

    def list(self) -> list[EvaluationRecord]:  # noqa: A003
        with self._lock:
            return list(self._records)


class EvaluationRecorder:
    """Record evaluations, falling back to memory when the primary store fails.

    Args:
        primary: Durable store tried first.
        fallback: Store used when the primary raises.
    """

    def __init__(
        self,
        primary: EvaluationStore | InMemoryEvaluationStore,
        fallback: InMemoryEvaluationStore | None = None,
    ) -> None:
        self._primary = primary
        self._fallback = fallback or InMemoryEvaluationStore()

    def record(
        self,
        *,
        model_name: str,
        user_query: str,
        actions: list[str],
        is_correct: bool,
        explanation: str = "",
        user_feedback: str | None = None,
        initial_state: dict[str, Any] | None = None,
        timestamp: float | None = None,
    ) -> RecordResult:
        """Store one evaluation.

        Returns:
            RecordResult naming the store that accepted the record.

        Raises:
            RecorderError: Only if the fallback store fails as well.
        """
        record = EvaluationRecord(
            id=uuid.uuid4().hex[:12],
            model_name=model_name,
            user_query=user_query,
            actions=list(actions),
            is_correct=is_correct,
            explanation=explanation,
            user_feedback=user_feedback,
            initial_state=initial_state or {},
            timestamp=timestamp if timestamp is not None else time.time(),
        )

        try:
            self._primary.add(record)
            source = self._primary.source
        except RecorderError as e:
            logger.warning("Primary evaluation store failed (%s); using in-memory store", e)
            try:
                self._fallback.add(record)
            except Exception as fallback_error:
                raise RecorderError(
                    f"Evaluation could not be stored: {fallback_error}"
                ) from fallback_error
            source = self._fallback.source

        logger.info(
            "Recorded evaluation %s: model=%s correct=%s source=%s",
            record.id,
            model_name,
            is_correct,
            source,
        )
        return RecordResult(success=True, storage_source=source, id=record.id)

    def list(self) -> list[EvaluationRecord]:  # noqa: A003
        """All records from both stores, newest first."""
        records = self._primary.list() + self._fallback.list()
        return sorted(records, key=lambda r: r.timestamp, reverse=True)

    def summary(self) -> list[EvaluationSummary]:
        """Per-model totals and accuracy, sorted by model name."""
        totals: Counter[str] = Counter()
        correct: Counter[str] = Counter()
        for r in self.list():
            totals[r.model_name] += 1
            if r.is_correct:
                correct[r.model_name] += 1
        return [
            EvaluationSummary(
                model_name=name,
                total=totals[name],
                correct=correct[name],
                accuracy=round(correct[name] / totals[name], 4),
            )
            for name in sorted(totals)
        ]
