"""
Time unit and money helpers.

Pure conversions between durations, currency amounts and the display/wire
formats used by the booking wizard. Nothing here touches session state.
"""

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from zoneinfo import ZoneInfo

from shared.config import get_settings

CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "CA$",
    "EUR": "€",
    "GBP": "£",
}

WIRE_DATE_FORMAT = "%Y-%m-%d"

_CENTS = Decimal("0.01")


def business_timezone() -> ZoneInfo:
    """Timezone of the business, from settings."""
    return ZoneInfo(get_settings().TIMEZONE)


def parse_price(value: str | int | float | Decimal | None) -> Decimal:
    """
    Parse a catalog price into a Decimal.

    Prices travel as decimal strings ("45.00"). Missing or malformed values
    count as zero so a bad catalog entry never breaks the cart total.

    Examples:
        >>> parse_price("45.00")
        Decimal('45.00')
        >>> parse_price("abc")
        Decimal('0')
        >>> parse_price(None)
        Decimal('0')
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount


def format_price(amount: str | int | float | Decimal | None, currency: str | None = None) -> str:
    """
    Format an amount as currency with two decimals.

    Examples:
        >>> format_price(Decimal("60"))
        '$60.00'
        >>> format_price(1234.5, "EUR")
        '€1,234.50'
    """
    code = (currency or get_settings().CURRENCY or "USD").upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    value = parse_price(amount).quantize(_CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_duration(minutes: int | None) -> str:
    """
    Format a duration in minutes as hours and minutes.

    Examples:
        >>> format_duration(50)
        '0h 50m'
        >>> format_duration(125)
        '2h 5m'
    """
    if minutes is None or not isinstance(minutes, int):
        return "0"
    return f"{minutes // 60}h {minutes % 60}m"


def _coerce_datetime(value: str | datetime | date) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(value)


def format_time(value: str | datetime | None, fmt: str = "%H:%M:%S") -> str:
    """Format a datetime (or ISO string) as a time, "-" when missing."""
    if not value:
        return "-"
    return _coerce_datetime(value).strftime(fmt)


def format_date(value: str | datetime | date | None, fmt: str = WIRE_DATE_FORMAT) -> str:
    """Format a date (or ISO string) as YYYY-MM-DD by default, "-" when missing."""
    if not value:
        return "-"
    return _coerce_datetime(value).strftime(fmt)


def add_minutes(start: datetime, minutes: int) -> datetime:
    """Return ``start`` shifted by a whole number of minutes."""
    return start + timedelta(minutes=minutes)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``."""
    return int((end - start).total_seconds() // 60)


def localize(dt: datetime, timezone: ZoneInfo | None = None) -> datetime:
    """Attach the business timezone to naive datetimes; aware ones pass through."""
    if dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone or business_timezone())


def to_wire_date(value: date | datetime) -> str:
    """Format a calendar date for the API (YYYY-MM-DD)."""
    return value.strftime(WIRE_DATE_FORMAT)


def to_wire_datetime(dt: datetime, timezone: ZoneInfo | None = None) -> str:
    """
    Format a timestamp for the API: ISO-8601 with an explicit UTC offset.

    Example:
        >>> to_wire_datetime(datetime.fromisoformat("2025-12-01T09:00:00-05:00"))
        '2025-12-01T09:00:00-05:00'
    """
    return localize(dt, timezone).isoformat(timespec="seconds")
