"""
Revenue Value Objects
=====================

Pure functions for pace calculations.

Pace and watch-list thresholds use the unrounded change. The big-mover
check alone uses the whole percent shown in the report.
"""

from decimal import Decimal
from typing import Union

from spend_monitor.config import (
    Classification, PaceLabel,
    UNBOUNDED_GROWTH_PCT, SURGING_PCT, CLIFF_PCT, BIG_MOVER_PCT,
)
from spend_monitor.revenue.domain.entities import CustomerRef, PaceReport, round_pct

Number = Union[Decimal, int, float, str]

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def _dec(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class PaceCalculator:
    """
    Pure functions for pace calculations.

    Stateless utility class: classifying the same inputs twice always
    yields equal PaceReports.
    """

    @staticmethod
    def prorate(prior: Number, day_of_month: int, days_in_prior_month: int) -> Decimal:
        """
        Scale a full prior-month total down to the days elapsed this month.

        Returns 0 when there is no prior revenue or the month length is
        unknown.
        """
        prior = _dec(prior)
        if prior <= _ZERO or days_in_prior_month <= 0:
            return _ZERO
        return prior * Decimal(day_of_month) / Decimal(days_in_prior_month)

    @staticmethod
    def change_pct(current: Number, prorated_baseline: Number) -> Decimal:
        """
        Percentage change of ``current`` against the baseline.

        A zero baseline yields UNBOUNDED_GROWTH_PCT when revenue appeared
        and 0 when there is still none.
        """
        current = _dec(current)
        baseline = _dec(prorated_baseline)
        if baseline > _ZERO:
            return (current - baseline) / baseline * _HUNDRED
        if current > _ZERO:
            return UNBOUNDED_GROWTH_PCT
        return _ZERO

    @staticmethod
    def classification_for(
        change_pct: Decimal,
        growth_threshold: Number,
        decline_threshold: Number
    ) -> Classification:
        """
        Classify a change; growth is checked first.

        ``decline_threshold`` may be given as ``-10`` or ``10``; only its
        magnitude is used.
        """
        if change_pct >= _dec(growth_threshold):
            return Classification.GROWING
        if change_pct <= -abs(_dec(decline_threshold)):
            return Classification.DECLINING
        return Classification.NORMAL

    @staticmethod
    def sub_label_for(classification: Classification, change_pct: Decimal) -> str:
        """Display sub-label within a classification."""
        if classification == Classification.GROWING:
            return PaceLabel.SURGING if change_pct >= SURGING_PCT else PaceLabel.ON_PACE
        if classification == Classification.DECLINING:
            return PaceLabel.CLIFF if change_pct <= CLIFF_PCT else PaceLabel.SIGNIFICANT_DECLINE
        return PaceLabel.TRACKING_NORMALLY

    @staticmethod
    def classify(
        customer: CustomerRef,
        current: Number,
        prior: Number,
        day_of_month: int,
        days_in_prior_month: int,
        growth_threshold: Number,
        decline_threshold: Number,
        current_resolved: bool = True,
        prior_resolved: bool = True,
    ) -> PaceReport:
        """
        Build the PaceReport for one customer.

        Args:
            customer: Customer being classified
            current: Month-to-date revenue
            prior: Full prior-month revenue
            day_of_month: Today's day of month (days elapsed)
            days_in_prior_month: Length of the prior month
            growth_threshold: Percent at or above which the customer is GROWING
            decline_threshold: Percent magnitude at or below whose negative
                the customer is DECLINING
            current_resolved: False when the current figure could not be fetched
            prior_resolved: False when the prior figure could not be fetched

        Returns:
            PaceReport
        """
        current = _dec(current)
        prior = _dec(prior)
        baseline = PaceCalculator.prorate(prior, day_of_month, days_in_prior_month)
        change = PaceCalculator.change_pct(current, baseline)
        classification = PaceCalculator.classification_for(
            change, growth_threshold, decline_threshold
        )

        return PaceReport(
            customer=customer,
            current_amount=current,
            prior_amount=prior,
            prorated_baseline=baseline,
            change_pct=change,
            classification=classification,
            sub_label=PaceCalculator.sub_label_for(classification, change),
            current_resolved=current_resolved,
            prior_resolved=prior_resolved,
        )

    @staticmethod
    def is_big_mover(change_pct: Decimal) -> bool:
        """
        Big movers get a service-level driver line.

        Compared on the whole percent the report displays.
        """
        return abs(round_pct(change_pct)) > BIG_MOVER_PCT

    @staticmethod
    def is_steep_drop(change_pct: Decimal, watch_drop_threshold: Number) -> bool:
        """True when the drop reaches the watch-list threshold (sign ignored)."""
        return change_pct <= -abs(_dec(watch_drop_threshold))
