"""
Revenue Parsing
===============

Typed parsers that turn upstream payloads into numbers.

Each parser returns a structured result instead of "first regex match",
so a caller can tell "no figure found" from "figure is zero".
"""

import csv
import io
import re
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Sequence

from spend_monitor.revenue.domain.entities import ServiceDelta, YearMonth

_NUMBER = r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?"

_AMOUNT_RE = re.compile(
    rf"^(?P<sign>-)?\s*(?P<cur>[$€£])?\s*(?P<sign2>-)?(?P<num>{_NUMBER})$"
)

# Numbers glued to '-', '/' or word characters are dates, ids or labels.
_TOKEN_RE = re.compile(
    rf"(?<![\w.,/-])(?P<sign>-)?(?P<cur>[$€£])?(?P<num>{_NUMBER})"
    rf"(?:(?P<suffix>[Bb][Nn]|[KkMmBb])|\s*(?P<word>(?i:thousand|million|billion|bn|k|m)))?"
    rf"(?![\w/%-]|[.,]\d)"
)

_SUFFIX_MULTIPLIERS = {
    "k": Decimal("1e3"),
    "thousand": Decimal("1e3"),
    "m": Decimal("1e6"),
    "million": Decimal("1e6"),
    "b": Decimal("1e9"),
    "bn": Decimal("1e9"),
    "billion": Decimal("1e9"),
}

_AMOUNT_HEADER_HINTS = ("revenue", "amount", "sales", "total", "spend", "value")
_MONTH_HEADER_HINTS = ("month", "date", "period")
_SERVICE_HEADER_HINTS = ("service", "product", "sku")
_DELTA_HEADER_HINTS = ("delta", "change", "diff")


@dataclass(frozen=True)
class ParsedAmount:
    """Outcome of a numeric parse."""
    value: Optional[Decimal]
    raw: str = ""
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.value is not None

    @classmethod
    def success(cls, value: Decimal, raw: str) -> "ParsedAmount":
        return cls(value=value, raw=raw)

    @classmethod
    def failure(cls, reason: str, raw: str = "") -> "ParsedAmount":
        return cls(value=None, raw=raw, reason=reason)


def _to_decimal(number: str, negative: bool) -> Decimal:
    value = Decimal(number.replace(",", ""))
    return -value if negative else value


def parse_amount(text: str) -> ParsedAmount:
    """
    Parse a single cell such as ``$1,234.56``, ``-$12``, ``$-12`` or ``980``.

    Thousands separators, a leading currency symbol and a minus sign on
    either side of the symbol are accepted. Anything else is a failure.
    """
    raw = (text or "").strip()
    match = _AMOUNT_RE.match(raw)
    if not match:
        return ParsedAmount.failure("not a number", raw)
    negative = bool(match.group("sign") or match.group("sign2"))
    try:
        return ParsedAmount.success(_to_decimal(match.group("num"), negative), raw)
    except InvalidOperation:
        return ParsedAmount.failure("not a number", raw)


def _looks_like_year(number: str) -> bool:
    return number.isdigit() and len(number) == 4 and 1900 <= int(number) <= 2099


def extract_currency_amount(text: str) -> ParsedAmount:
    """
    Pull the revenue figure out of free text.

    Prefers the first token carrying a currency symbol. Magnitudes are
    expanded whether glued (``$1.2M``, ``$425K``) or spelled out
    (``$1.2 million``). Without a currency token, takes the first bare
    number that is not a year, a date fragment or a percentage.
    """
    if not text:
        return ParsedAmount.failure("empty response")

    plain: Optional[ParsedAmount] = None
    for match in _TOKEN_RE.finditer(text):
        number = match.group("num")
        suffix = (match.group("suffix") or "").lower()
        magnitude = suffix or (match.group("word") or "").lower()
        has_currency = bool(match.group("cur"))
        negative = bool(match.group("sign"))

        if suffix and not has_currency:
            continue

        value = _to_decimal(number, negative)
        if magnitude:
            value *= _SUFFIX_MULTIPLIERS[magnitude]

        if has_currency:
            return ParsedAmount.success(value, match.group(0))
        if plain is None and not _looks_like_year(number):
            plain = ParsedAmount.success(value, match.group(0))

    return plain or ParsedAmount.failure("no currency figure in text", text[:80])


def _read_rows(csv_text: str) -> List[List[str]]:
    if not csv_text or not csv_text.strip():
        return []
    reader = csv.reader(io.StringIO(csv_text.strip()))
    return [[cell.strip() for cell in row] for row in reader if any(c.strip() for c in row)]


def _cell_is_month(cell: str, month: YearMonth) -> bool:
    lowered = cell.strip().lower()
    return lowered in month.labels or lowered.startswith(f"{month.label}-")


def _find_column(header: Sequence[str], hints: Sequence[str], exclude: Sequence[str] = ()) -> Optional[int]:
    for idx, name in enumerate(header):
        lowered = name.lower()
        if any(h in lowered for h in hints) and not any(x in lowered for x in exclude):
            return idx
    return None


def _row_amount(row: Sequence[str], amount_col: Optional[int], skip: Sequence[int] = ()) -> ParsedAmount:
    if amount_col is not None and amount_col < len(row):
        return parse_amount(row[amount_col])
    for idx in range(len(row) - 1, -1, -1):
        if idx in skip:
            continue
        parsed = parse_amount(row[idx])
        if parsed.ok:
            return parsed
    return ParsedAmount.failure("no numeric cell in row")


def select_month_amount(csv_text: str, month: YearMonth) -> ParsedAmount:
    """
    Pick the amount for ``month`` out of a tabular (CSV) view export.

    The row is chosen by its month label, never by position. Its amount is
    read from the revenue-like column when the header names one, else from
    the last numeric cell of the row. A wide export whose header carries the
    month labels (``Account Name, 2026-09, 2026-10``) is read by column.
    """
    rows = _read_rows(csv_text)
    if not rows:
        return ParsedAmount.failure("empty table")

    header = rows[0]
    month_cols = [i for i, cell in enumerate(header) if _cell_is_month(cell, month)]
    if month_cols and not any(parse_amount(cell).ok for cell in header):
        return _column_amount(rows[1:], month_cols[0], month)

    header_is_data = bool(month_cols)
    amount_col = None if header_is_data else _find_column(
        header, _AMOUNT_HEADER_HINTS, exclude=_MONTH_HEADER_HINTS
    )

    for row in rows if header_is_data else rows[1:]:
        month_cells = [i for i, cell in enumerate(row) if _cell_is_month(cell, month)]
        if not month_cells:
            continue
        return _row_amount(row, amount_col, skip=month_cells)

    return ParsedAmount.failure(f"no row for {month.label}")


def _column_amount(data: Sequence[Sequence[str]], col: int, month: YearMonth) -> ParsedAmount:
    for row in data:
        parsed = _cell(row, col)
        if parsed.ok:
            return parsed
    return ParsedAmount.failure(f"no value for {month.label}")


def parse_service_breakdown(
    csv_text: str,
    current: YearMonth,
    prior: YearMonth,
) -> List[ServiceDelta]:
    """
    Reduce a service-breakdown export to one delta per service.

    Understands three shapes:
    - long: ``Service, Month, Revenue`` rows, pivoted by month label
    - wide with month columns: ``Service, 2026-09, 2026-10``
    - wide with an explicit ``Delta``/``Change`` column
    Falls back to first vs last numeric column when no header says more.
    """
    rows = _read_rows(csv_text)
    if len(rows) < 2:
        return []

    header, data = rows[0], rows[1:]
    service_col = _find_column(header, _SERVICE_HEADER_HINTS)
    if service_col is None:
        service_col = 0

    month_col = _find_column(header, _MONTH_HEADER_HINTS)
    if month_col is not None and month_col != service_col:
        return _pivot_long(data, header, service_col, month_col, current, prior)

    current_col = next((i for i, h in enumerate(header) if _cell_is_month(h, current)), None)
    prior_col = next((i for i, h in enumerate(header) if _cell_is_month(h, prior)), None)
    delta_col = _find_column(header, _DELTA_HEADER_HINTS)

    deltas: List[ServiceDelta] = []
    for row in data:
        if service_col >= len(row) or not row[service_col]:
            continue
        service = row[service_col]

        if current_col is not None and prior_col is not None:
            cur = _cell(row, current_col)
            pri = _cell(row, prior_col)
            if cur.ok and pri.ok:
                deltas.append(ServiceDelta(service, cur.value - pri.value, cur.value))
            continue

        if delta_col is not None:
            delta = _cell(row, delta_col)
            if delta.ok:
                deltas.append(ServiceDelta(service, delta.value))
            continue

        numeric = [parse_amount(c) for i, c in enumerate(row) if i != service_col]
        numeric = [n for n in numeric if n.ok]
        if len(numeric) >= 2:
            deltas.append(ServiceDelta(service, numeric[-1].value - numeric[0].value, numeric[-1].value))

    return deltas


def _cell(row: Sequence[str], idx: int) -> ParsedAmount:
    if idx >= len(row):
        return ParsedAmount.failure("missing cell")
    return parse_amount(row[idx])


def _pivot_long(
    data: Sequence[Sequence[str]],
    header: Sequence[str],
    service_col: int,
    month_col: int,
    current: YearMonth,
    prior: YearMonth,
) -> List[ServiceDelta]:
    amount_col = _find_column(header, _AMOUNT_HEADER_HINTS, exclude=_MONTH_HEADER_HINTS)
    current_totals: Dict[str, Decimal] = OrderedDict()
    prior_totals: Dict[str, Decimal] = OrderedDict()

    for row in data:
        if max(service_col, month_col) >= len(row):
            continue
        service, month_cell = row[service_col], row[month_col]
        if _cell_is_month(month_cell, current):
            bucket = current_totals
        elif _cell_is_month(month_cell, prior):
            bucket = prior_totals
        else:
            continue
        amount = _row_amount(row, amount_col, skip=(service_col, month_col))
        if amount.ok:
            bucket[service] = bucket.get(service, Decimal("0")) + amount.value

    services = list(OrderedDict.fromkeys([*current_totals, *prior_totals]))
    return [
        ServiceDelta(
            service,
            current_totals.get(service, Decimal("0")) - prior_totals.get(service, Decimal("0")),
            current_totals.get(service, Decimal("0")),
        )
        for service in services
    ]


def select_top_driver(deltas: Sequence[ServiceDelta]) -> Optional[ServiceDelta]:
    """Service with the largest absolute delta; the first one wins a tie."""
    if not deltas:
        return None
    return max(deltas, key=lambda d: abs(d.delta))
