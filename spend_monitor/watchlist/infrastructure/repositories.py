"""
Watch List Repositories
=======================

Read-only access to the escalation and ticket trackers.

- Escalation tracker: one JSON file holding an array of
  ``{customer, date, summary}``
- Ticket tracker: JSON files matched by a glob, each holding
  ``{ticket_id, customer, created_date, status}``

Unreadable files and malformed records are skipped with a warning; a
missing tracker simply contributes nothing.
"""

import glob
import json
from datetime import date
from pathlib import Path
from typing import Any, List, Optional

from spend_monitor.watchlist.application import IEscalationProvider, ITicketProvider
from spend_monitor.watchlist.domain import EscalationRecord, TicketRecord
from spend_monitor.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def parse_tracker_date(value: Any) -> Optional[date]:
    """Accept ``YYYY-MM-DD`` or a full ISO timestamp; None when unparseable."""
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class JSONEscalationRepository(IEscalationProvider):
    """Escalation tracker stored as a single JSON array."""

    def __init__(self, path: Optional[Path]):
        self._path = Path(path).expanduser() if path else None

    def load(self) -> List[EscalationRecord]:
        if self._path is None or not self._path.is_file():
            return []

        try:
            data = _read_json(self._path)
        except (OSError, ValueError) as e:
            logger.warning(
                "Escalation tracker unreadable, skipping",
                extra={"path": str(self._path), "error": str(e)},
            )
            return []

        if not isinstance(data, list):
            logger.warning("Escalation tracker is not a JSON array", extra={"path": str(self._path)})
            return []

        records = []
        for item in data:
            if not isinstance(item, dict):
                continue
            when = parse_tracker_date(item.get("date"))
            customer = item.get("customer")
            if when is None or not customer:
                logger.debug("Skipping malformed escalation record", extra={"record": str(item)[:120]})
                continue
            records.append(EscalationRecord(
                customer=str(customer),
                date=when,
                summary=str(item.get("summary") or ""),
            ))
        return records


class JSONTicketRepository(ITicketProvider):
    """Ticket tracker stored as one JSON file per ticket."""

    def __init__(self, pattern: Optional[str]):
        self._pattern = str(Path(pattern).expanduser()) if pattern else None

    def load(self) -> List[TicketRecord]:
        if not self._pattern:
            return []

        records = []
        for filename in sorted(glob.glob(self._pattern)):
            path = Path(filename)
            if not path.is_file():
                continue
            try:
                data = _read_json(path)
            except (OSError, ValueError) as e:
                logger.warning(
                    "Ticket file unreadable, skipping",
                    extra={"path": filename, "error": str(e)},
                )
                continue

            if not isinstance(data, dict):
                continue
            created = parse_tracker_date(data.get("created_date"))
            if created is None:
                logger.debug("Ticket without a usable created_date", extra={"path": filename})
                continue
            records.append(TicketRecord(
                ticket_id=str(data.get("ticket_id") or path.stem),
                customer=str(data.get("customer") or ""),
                created_date=created,
                status=str(data.get("status") or ""),
            ))
        return records
