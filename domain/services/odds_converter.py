"""
Odds parsing and conversion between American and decimal notation.

Wagers store decimal odds only. American input ("+150", "-110") is
converted on the way in, and converted back for display.
"""

DEFAULT_DECIMAL_ODDS = 2.0  # Even money
MIN_DECIMAL_ODDS = 1.01


def american_to_decimal(american: float) -> float:
    """
    Convert an American odds value to decimal odds.

    Positive values are the profit on a 100 stake (+150 -> 2.5),
    negative values the stake needed to win 100 (-200 -> 1.5).

    Raises:
        ValueError: If the value is zero (no such price exists)
    """
    if american > 0:
        return american / 100 + 1
    if american < 0:
        return 100 / abs(american) + 1
    raise ValueError("American odds cannot be zero.")


def normalize_odds(raw: str | None) -> float:
    """
    Parse user-supplied odds into decimal odds.

    Accepts American notation (leading '+' or '-') or decimal notation.
    Missing, unparsable or out-of-range input silently falls back to
    even money (2.0). Callers that need strict validation must check
    the input themselves.
    """
    if raw is None:
        return DEFAULT_DECIMAL_ODDS
    text = str(raw).strip()
    if not text:
        return DEFAULT_DECIMAL_ODDS

    try:
        if text[0] in "+-":
            decimal = american_to_decimal(float(text))
        else:
            decimal = float(text)
    except ValueError:
        return DEFAULT_DECIMAL_ODDS

    # NaN fails this comparison too
    if not decimal >= MIN_DECIMAL_ODDS or decimal == float("inf"):
        return DEFAULT_DECIMAL_ODDS
    return decimal


def decimal_to_american(decimal: float) -> int:
    """
    Convert decimal odds to the nearest American odds value.

    Decimal >= 2.0 maps to a positive price, anything shorter to a
    negative one. The 1.01 floor keeps (decimal - 1) away from zero.
    """
    if decimal >= 2.0:
        return round((decimal - 1) * 100)
    return -round(100 / (decimal - 1))


def format_american(decimal: float) -> str:
    """Return American odds with an explicit sign, e.g. '+150' or '-200'."""
    american = decimal_to_american(decimal)
    return f"+{american}" if american > 0 else str(american)


def format_odds(decimal: float) -> str:
    """Return odds in both notations for embeds, e.g. '+150 (2.50x)'."""
    return f"{format_american(decimal)} ({decimal:.2f}x)"
