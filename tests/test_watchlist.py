"""Test the watch list aggregator and the tracker repositories."""
import json
from datetime import date, timedelta
from decimal import Decimal

from spend_monitor.config import WatchReason
from spend_monitor.revenue.domain import PaceCalculator
from spend_monitor.watchlist.application import WatchListAggregator
from spend_monitor.watchlist.domain import EscalationRecord, TicketRecord
from spend_monitor.watchlist.infrastructure import (
    JSONEscalationRepository,
    JSONTicketRepository,
    parse_tracker_date,
)

TODAY = date(2026, 10, 16)


def _ticket(days_old, status="open", ticket_id="ENGDESK-12"):
    return TicketRecord(ticket_id, "Initech", TODAY - timedelta(days=days_old), status)


def _escalations(customer, count, days_ago=1):
    return [
        EscalationRecord(customer, TODAY - timedelta(days=days_ago), summary)
        for summary in "abcdefg"[:count]
    ]


# ===================================================================
# Ticket age
# ===================================================================


class TestTicketRecord:
    def test_business_age_approximation(self):
        assert _ticket(10).business_age_days(TODAY) == 7

    def test_future_created_date_is_zero(self):
        assert _ticket(-3).calendar_age_days(TODAY) == 0

    def test_open_unless_resolved_or_closed(self):
        assert _ticket(1, "in progress").is_open
        assert not _ticket(1, "resolved").is_open
        assert not _ticket(1, "Closed").is_open


# ===================================================================
# Aggregator
# ===================================================================


class TestStaleTickets:
    def test_ten_day_open_ticket_is_stale(self):
        entries = WatchListAggregator().stale_ticket_entries([_ticket(10)], TODAY)
        assert len(entries) == 1
        assert entries[0].reason == WatchReason.STALE_TICKET
        assert entries[0].detail == "ENGDESK-12 stale (7 business days)"

    def test_resolved_ticket_excluded(self):
        assert WatchListAggregator().stale_ticket_entries([_ticket(10, "resolved")], TODAY) == []

    def test_stale_boundary(self):
        aggregator = WatchListAggregator(stale_business_days=5)
        assert aggregator.stale_ticket_entries([_ticket(6)], TODAY) == []
        assert len(aggregator.stale_ticket_entries([_ticket(7)], TODAY)) == 1


class TestEscalations:
    def test_threshold_reached(self):
        entries = WatchListAggregator().escalation_entries(_escalations("Initech", 3), TODAY)
        assert len(entries) == 1
        assert entries[0].customer_name == "Initech"
        assert entries[0].detail == "3 escalations this week (a, b, c)"

    def test_examples_capped_at_three(self):
        entries = WatchListAggregator().escalation_entries(_escalations("Initech", 4), TODAY)
        assert entries[0].detail == "4 escalations this week (a, b, c)"

    def test_below_threshold(self):
        assert WatchListAggregator().escalation_entries(_escalations("Initech", 2), TODAY) == []

    def test_old_escalations_ignored(self):
        old = _escalations("Initech", 5, days_ago=8)
        assert WatchListAggregator().escalation_entries(old, TODAY) == []

    def test_window_includes_seventh_day(self):
        edge = _escalations("Initech", 3, days_ago=7)
        assert len(WatchListAggregator().escalation_entries(edge, TODAY)) == 1

    def test_sorted_by_customer(self):
        records = _escalations("Zeta", 3) + _escalations("Alpha", 3)
        names = [e.customer_name for e in WatchListAggregator().escalation_entries(records, TODAY)]
        assert names == ["Alpha", "Zeta"]


class TestSteepDrops:
    def test_drop_past_threshold_uses_display_name(self, customer):
        report = PaceCalculator.classify(customer, 3700, 61000, 15, 30, 15, 10)
        entries = WatchListAggregator(watch_drop_pct=-25).steep_drop_entries([report])
        assert entries[0].customer_name == "Acme"
        assert entries[0].detail == "-88% MoM drop — needs attention"

    def test_mild_decline_not_flagged(self, customer):
        report = PaceCalculator.classify(customer, 80000, 100000, 30, 30, 15, 10)
        assert WatchListAggregator(watch_drop_pct=Decimal("-25")).steep_drop_entries([report]) == []


class TestAggregate:
    def test_order_and_no_dedup(self, customer):
        drop = PaceCalculator.classify(customer, 0, 61000, 15, 30, 15, 10)
        entries = WatchListAggregator().aggregate(
            _escalations("Acme", 3), [_ticket(10)], [drop], TODAY
        )
        assert [e.reason for e in entries] == [
            WatchReason.STEEP_DROP,
            WatchReason.ESCALATIONS,
            WatchReason.STALE_TICKET,
        ]

    def test_empty_inputs(self):
        assert WatchListAggregator().aggregate([], [], [], TODAY) == []


# ===================================================================
# Repositories
# ===================================================================


class TestParseTrackerDate:
    def test_date_and_timestamp(self):
        assert parse_tracker_date("2026-10-01") == date(2026, 10, 1)
        assert parse_tracker_date("2026-10-01T12:30:00Z") == date(2026, 10, 1)

    def test_invalid(self):
        assert parse_tracker_date("yesterday") is None
        assert parse_tracker_date(None) is None
        assert parse_tracker_date(20261001) is None


class TestJSONEscalationRepository:
    def test_loads_and_skips_malformed(self, tmp_path):
        path = tmp_path / "escalations.json"
        path.write_text(json.dumps([
            {"customer": "Initech", "date": "2026-10-15", "summary": "latency"},
            {"customer": "Initech", "date": "not a date"},
            {"date": "2026-10-15"},
            "garbage",
        ]))

        records = JSONEscalationRepository(path).load()

        assert records == [EscalationRecord("Initech", date(2026, 10, 15), "latency")]

    def test_missing_file(self, tmp_path):
        assert JSONEscalationRepository(tmp_path / "nope.json").load() == []

    def test_unset_path(self):
        assert JSONEscalationRepository(None).load() == []

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "escalations.json"
        path.write_text("{not json")
        assert JSONEscalationRepository(path).load() == []

    def test_not_an_array(self, tmp_path):
        path = tmp_path / "escalations.json"
        path.write_text(json.dumps({"customer": "Initech"}))
        assert JSONEscalationRepository(path).load() == []


class TestJSONTicketRepository:
    def test_loads_matching_files(self, tmp_path):
        (tmp_path / "ENGDESK-1.json").write_text(json.dumps({
            "ticket_id": "ENGDESK-1", "customer": "Initech",
            "created_date": "2026-10-01T09:00:00Z", "status": "open",
        }))
        (tmp_path / "ENGDESK-2.json").write_text(json.dumps({
            "customer": "Globex", "created_date": "2026-10-02", "status": "resolved",
        }))
        (tmp_path / "ENGDESK-3.json").write_text(json.dumps({"customer": "Acme"}))
        (tmp_path / "broken.json").write_text("{")
        (tmp_path / "notes.txt").write_text("ignored")

        records = JSONTicketRepository(str(tmp_path / "*.json")).load()

        assert [r.ticket_id for r in records] == ["ENGDESK-1", "ENGDESK-2"]
        assert records[0].created_date == date(2026, 10, 1)
        assert records[1].status == "resolved"

    def test_no_pattern(self):
        assert JSONTicketRepository(None).load() == []

    def test_no_matches(self, tmp_path):
        assert JSONTicketRepository(str(tmp_path / "*.json")).load() == []
