"""Fundraiser message layout.

Turns a donation total and an optional "as of" date into the six-line board:

    1. title, two accent tiles each side
    2. subtitle, three accent tiles each side
    3. solid accent bar
    4. amount, two highlight tiles each side
    5. "Raised as of <Mon> <day>"
    6. closing, four accent tiles each side
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from ..core.config import MessageConfig
from ..core.errors import LayoutError
from .charset import BLANK, COLUMNS, Color, SymbolGrid, encode

logger = logging.getLogger(__name__)

# Fixed English abbreviations; the process locale must not change the board
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


@dataclass(frozen=True)
class MessageTemplate:
    """Wording and colors of the fundraiser board."""

    title: str = "Help Rebuild"
    subtitle: str = "The Bev!"
    amount_label: str = "Raised"
    closing: str = "Thank You!"
    accent: Color = Color.ORANGE
    highlight: Color = Color.GREEN

    @classmethod
    def from_config(cls, config: MessageConfig) -> "MessageTemplate":
        return cls(
            title=config.title,
            subtitle=config.subtitle,
            amount_label=config.amount_label,
            closing=config.closing,
            accent=Color.from_name(config.accent_color),
            highlight=Color.from_name(config.amount_color),
        )


def build_row(text: str, color: int | None = None, tiles: int = 1) -> list[int]:
    """Encode text, optionally flank it with color tiles, and center it.

    Content wider than the board is returned as is; use :func:`fit_row`
    when the result must fit.

    Args:
        text: Text to show (case-insensitive)
        color: Color code for the flanking tiles, or None for none
        tiles: Number of color tiles on each side

    Returns:
        Row of codes, COLUMNS long unless the content overflows
    """
    codes = encode(text)
    if color is not None:
        flank = [int(color)] * tiles
        codes = flank + codes + flank

    padding = max(0, COLUMNS - len(codes))
    left = padding // 2
    right = padding - left
    return [BLANK] * left + codes + [BLANK] * right


def fit_row(text: str, color: int | None = None, tiles: int = 1) -> list[int]:
    """Like :func:`build_row`, but drops color tiles until the row fits.

    Raises:
        LayoutError: If the text alone is wider than the board
    """
    width = len(encode(text))
    if width > COLUMNS:
        raise LayoutError(
            f"Text does not fit on the board: {text!r}",
            details={"width": width, "columns": COLUMNS},
        )

    if color is not None:
        fitted = min(tiles, (COLUMNS - width) // 2)
        if fitted < tiles:
            logger.debug("Reduced decoration of %r from %d to %d tiles", text, tiles, fitted)
        tiles = fitted
        if tiles == 0:
            color = None

    return build_row(text, color, tiles)


def format_currency(amount: float) -> str:
    """Format as whole US dollars, e.g. 12345.5 -> "$12,346"."""
    dollars = int(Decimal(str(amount)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    sign = "-" if dollars < 0 else ""
    return f"{sign}${abs(dollars):,}"


def format_as_of(as_of: date) -> str:
    """Date suffix for the amount label, e.g. "as of Mar 4"."""
    return f"as of {MONTH_ABBREVIATIONS[as_of.month - 1]} {as_of.day}"


def format_message(
    amount: float,
    as_of: date | None = None,
    template: MessageTemplate | None = None,
) -> SymbolGrid:
    """Lay out the fundraiser board.

    Args:
        amount: Total raised in dollars
        as_of: Date of the latest donation entry, if known
        template: Wording and colors (defaults to the Bev fundraiser board)

    Returns:
        6x22 grid ready to publish
    """
    template = template or MessageTemplate()

    label = template.amount_label
    if as_of is not None:
        dated = f"{label} {format_as_of(as_of)}"
        if len(encode(dated)) <= COLUMNS:
            label = dated
        else:
            logger.warning("Label %r is too long for the date suffix, showing it without", label)

    rows = [
        fit_row(template.title, template.accent, 2),
        fit_row(template.subtitle, template.accent, 3),
        [int(template.accent)] * COLUMNS,
        fit_row(format_currency(amount), template.highlight, 2),
        fit_row(label),
        fit_row(template.closing, template.accent, 4),
    ]
    return SymbolGrid.from_rows(rows)
