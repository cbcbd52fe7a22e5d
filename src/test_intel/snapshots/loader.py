"""Snapshot loaders for locator indexes and run history exported by the host."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..models import (
    AssertionFailure,
    LocatorRecord,
    LocatorType,
    RunStatus,
    TestRunRecord,
    freeze_tests,
)

logger = logging.getLogger(__name__)


class SnapshotFormatError(ValueError):
    """A snapshot file could not be turned into records."""

    def __init__(self, message: str, source: str | Path | None = None, index: int | None = None):
        self.source = str(source) if source is not None else None
        self.index = index

        location = self.source or "<snapshot>"
        if index is not None:
            location = f"{location}[{index}]"
        super().__init__(f"{location}: {message}")


def load_locators(path: Path) -> list[LocatorRecord]:
    """Load a JSON locator index from disk."""
    return parse_locators(_read_json(path), source=path)


def load_runs(path: Path) -> list[TestRunRecord]:
    """Load a JSON run index from disk."""
    return parse_runs(_read_json(path), source=path)


def parse_locators(data: Any, source: str | Path | None = None) -> list[LocatorRecord]:
    """
    Build locator records from a decoded locator index.

    Accepts a bare list or an object with a ``locators`` key. A ``testCount``
    field is ignored; usage is always derived from ``usedInTests``.
    """
    entries = _unwrap(data, "locators", source)
    records = []

    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise SnapshotFormatError("locator entry must be an object", source, index)

        expression = _field(entry, "locator", "expression")
        if not isinstance(expression, str):
            raise SnapshotFormatError("missing locator expression", source, index)

        raw_type = _field(entry, "type", "locatorType", "locator_type")
        if not isinstance(raw_type, str):
            raise SnapshotFormatError("missing locator type", source, index)

        tests = _field(entry, "usedInTests", "used_in_tests") or []
        if not isinstance(tests, list):
            raise SnapshotFormatError("usedInTests must be a list", source, index)

        records.append(LocatorRecord(
            locator_type=LocatorType.parse(raw_type),
            expression=expression,
            used_in_tests=freeze_tests(str(t) for t in tests),
        ))

    logger.debug("Loaded %d locators from %s", len(records), source or "<memory>")
    return records


def parse_runs(data: Any, source: str | Path | None = None) -> list[TestRunRecord]:
    """Build run records from a decoded run index (list or ``runs`` object)."""
    entries = _unwrap(data, "runs", source)
    records = []

    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise SnapshotFormatError("run entry must be an object", source, index)

        test_name = _field(entry, "testName", "test_name")
        if not isinstance(test_name, str) or not test_name:
            raise SnapshotFormatError("missing testName", source, index)

        try:
            status = RunStatus(str(_field(entry, "status")).lower())
        except ValueError:
            raise SnapshotFormatError(
                f"unknown run status {_field(entry, 'status')!r}", source, index
            ) from None

        started_at = _parse_timestamp(_field(entry, "startedAt", "started_at"), source, index)
        if started_at is None:
            raise SnapshotFormatError("missing startedAt", source, index)

        records.append(TestRunRecord(
            test_name=test_name,
            status=status,
            started_at=started_at,
            run_id=_optional_str(_field(entry, "runId", "run_id")),
            finished_at=_parse_timestamp(_field(entry, "finishedAt", "finished_at"), source, index),
            assertion_failures=_parse_assertions(
                _field(entry, "assertionFailures", "assertion_failures") or [], source, index
            ),
        ))

    logger.debug("Loaded %d runs from %s", len(records), source or "<memory>")
    return records


def _read_json(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"invalid JSON ({e.msg} at line {e.lineno})", path) from e
    except OSError as e:
        raise SnapshotFormatError(f"cannot read file ({e.strerror})", path) from e


def _unwrap(data: Any, key: str, source: str | Path | None) -> list:
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise SnapshotFormatError(f"expected a list or an object with a '{key}' list", source)
    return data


def _field(entry: dict, *names: str) -> Any:
    """First present value among camelCase / snake_case aliases."""
    for name in names:
        if entry.get(name) is not None:
            return entry[name]
    return None


def _parse_timestamp(value: Any, source: str | Path | None, index: int) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise SnapshotFormatError(f"timestamp must be a string, got {value!r}", source, index)

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise SnapshotFormatError(f"invalid timestamp {value!r}", source, index) from None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_assertions(
    items: Any,
    source: str | Path | None,
    index: int,
) -> tuple[AssertionFailure, ...]:
    if not isinstance(items, list):
        raise SnapshotFormatError("assertionFailures must be a list", source, index)

    failures = []
    for item in items:
        if not isinstance(item, dict):
            raise SnapshotFormatError("assertion failure must be an object", source, index)
        line = item.get("line")
        failures.append(AssertionFailure(
            assertion_type=_optional_str(_field(item, "assertionType", "assertion_type")),
            target=_optional_str(item.get("target")),
            expected=_optional_str(item.get("expected")),
            actual=_optional_str(item.get("actual")),
            line=line if isinstance(line, int) else None,
        ))
    return tuple(failures)


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)
