def format_amount(amount: float) -> str:
    """Plain number for machine-facing text: ``4000``, ``12.5``."""
    text = f"{amount:.2f}".rstrip("0").rstrip(".")
    return "0" if text in {"-0", ""} else text


def format_currency(amount: float, symbol: str) -> str:
    """Grouped, whole-unit amount with the currency symbol: ``₹1,500``."""
    rounded = round(amount)
    if rounded < 0:
        return f"-{symbol}{abs(rounded):,}"
    return f"{symbol}{rounded:,}"
