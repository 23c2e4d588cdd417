"""
Report Formatting
=================

Renders a Report as the plain-text chat message.
"""

from typing import List

from spend_monitor.config import Classification, DriverDirection, PaceLabel
from spend_monitor.monitor.domain import Report
from spend_monitor.revenue.domain import DriverLine, PaceReport, YearMonth
from spend_monitor.shared.formatting import format_dollars, format_signed_pct


class ReportFormatter:
    """
    Plain-text report renderer.

    Sections:
    - header with the report date
    - one pace line per customer, in customer-list order
    - drivers grouped as high growth / watch (omitted when empty)
    - customers to watch (omitted when empty)
    - closing prompt
    """

    STATUS_EMOJI = {
        Classification.GROWING: "✅",
        Classification.DECLINING: "🚨",
        Classification.NORMAL: "➖",
    }

    HEADER = "📊 Customer Spend Monitor — {date}"
    DRIVERS_HEADER = "📈 WHAT'S DRIVING THE CHANGES"
    HIGH_GROWTH_HEADER = "High Growth (>50%):"
    WATCH_DRIVERS_HEADER = "Watch List:"
    WATCH_HEADER = "⚠️ CUSTOMERS TO WATCH"
    FOOTER = "Want to dig deeper into any of these? Just ask."
    UNAVAILABLE_NOTE = "(data unavailable)"

    def render(self, report: Report) -> str:
        lines = [self.HEADER.format(date=self.format_date(report)), ""]

        for pace in report.pace_reports:
            lines.append(self.pace_line(pace, report.prior_month, report.dry_run))

        if report.drivers:
            lines.extend(["", self.DRIVERS_HEADER])
            lines.extend(self._driver_block(report.drivers))

        if report.watch_entries:
            lines.extend(["", self.WATCH_HEADER])
            lines.extend(
                f"• {entry.customer_name}: {entry.detail}"
                for entry in report.watch_entries
            )

        lines.extend(["", self.FOOTER])
        return "\n".join(lines)

    @staticmethod
    def format_date(report: Report) -> str:
        """``Oct 16`` style date, no zero padding."""
        day = report.report_date
        return f"{day.strftime('%b')} {day.day}"

    def pace_line(self, pace: PaceReport, prior_month: YearMonth, dry_run: bool = False) -> str:
        name = pace.customer.display_name
        if dry_run:
            return f"➖ {name}: $0 (0%) — {PaceLabel.DRY_RUN}"

        if pace.sub_label == PaceLabel.CLIFF:
            status = f"{format_dollars(pace.prior_amount)} cliff from {prior_month.short_name}"
        else:
            status = pace.sub_label

        line = (
            f"{self.STATUS_EMOJI[pace.classification]} {name}: "
            f"{format_dollars(pace.current_amount)} "
            f"({format_signed_pct(pace.display_pct)}) — {status}"
        )
        if not pace.is_fully_resolved:
            line = f"{line} {self.UNAVAILABLE_NOTE}"
        return line

    def _driver_block(self, drivers: List[DriverLine]) -> List[str]:
        lines = []
        growth = [d for d in drivers if d.direction == DriverDirection.HIGH_GROWTH]
        watch = [d for d in drivers if d.direction == DriverDirection.WATCH]
        if growth:
            lines.append(self.HIGH_GROWTH_HEADER)
            lines.extend(f"• {d.customer.display_name}: {d.description}" for d in growth)
        if watch:
            lines.append(self.WATCH_DRIVERS_HEADER)
            lines.extend(f"• {d.customer.display_name}: {d.description}" for d in watch)
        return lines
