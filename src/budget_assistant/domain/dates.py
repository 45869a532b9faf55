import calendar


def split_date(value: str | None) -> tuple[int, int, int] | None:
    """Split a ``YYYY-MM-DD`` string (a trailing time part is ignored).

    Returns ``None`` for anything that does not decompose cleanly.
    """
    if not value:
        return None
    parts = value.strip().split("T", 1)[0].split(" ", 1)[0].split("-")
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(part) for part in parts)
    except ValueError:
        return None
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    return year, month, day


def previous_month(month: int, year: int) -> tuple[int, int]:
    if month == 1:
        return 12, year - 1
    return month - 1, year


def month_start_date(month: int, year: int) -> str:
    return f"{year:04d}-{month:02d}-01"


def month_name(month: int) -> str:
    return calendar.month_name[month]
