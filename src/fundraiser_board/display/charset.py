"""Vestaboard character codes and the board grid.

Code ranges: 0 blank, 1-26 A-Z, 27-36 digits 1-9 then 0, 37-60 punctuation,
63-69 color tiles.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Sequence

from ..core.errors import LayoutError

ROWS = 6
COLUMNS = 22
BLANK = 0


class Color(IntEnum):
    """Solid color tiles."""

    RED = 63
    ORANGE = 64
    YELLOW = 65
    GREEN = 66
    BLUE = 67
    VIOLET = 68
    WHITE = 69

    @classmethod
    def from_name(cls, name: str) -> "Color":
        """Look up a color by case-insensitive name (e.g. 'orange')."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown board color: {name}") from None


CHAR_CODES: dict[str, int] = {
    " ": BLANK,
    **{chr(ord("A") + i): i + 1 for i in range(26)},
    "1": 27, "2": 28, "3": 29, "4": 30, "5": 31,
    "6": 32, "7": 33, "8": 34, "9": 35, "0": 36,
    "!": 37, "@": 38, "#": 39, "$": 40, "(": 41, ")": 42,
    "-": 44, "+": 46, "&": 47, "=": 48, ";": 49, ":": 50,
    "'": 52, '"': 53, "%": 54, ",": 55, ".": 56, "/": 59,
    "?": 60,
}

_CODE_CHARS = {code: char for char, code in CHAR_CODES.items()}


def encode(text: str) -> list[int]:
    """Map text to codes, one per character, upper-casing first."""
    return [CHAR_CODES.get(c, BLANK) for c in text.upper()]


def decode(code: int) -> str:
    """Printable form of a code; color tiles render as a full block."""
    if Color.RED <= code <= Color.WHITE:
        return "█"
    return _CODE_CHARS.get(code, "?")


@dataclass(frozen=True)
class SymbolGrid:
    """Complete 6x22 board contents.

    Raises:
        LayoutError: If the rows do not form an exact 6x22 grid
    """

    rows: tuple[tuple[int, ...], ...]

    def __post_init__(self) -> None:
        if len(self.rows) != ROWS:
            raise LayoutError(f"Board needs {ROWS} rows, got {len(self.rows)}")
        for index, row in enumerate(self.rows):
            if len(row) != COLUMNS:
                raise LayoutError(
                    f"Row {index + 1} has {len(row)} tiles, board width is {COLUMNS}",
                    details={"row": index + 1},
                )

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[int]]) -> "SymbolGrid":
        return cls(tuple(tuple(row) for row in rows))

    def to_payload(self) -> list[list[int]]:
        """Grid as the JSON-ready ``characters`` array."""
        return [list(row) for row in self.rows]

    def preview_lines(self) -> list[str]:
        return ["".join(decode(code) for code in row) for row in self.rows]


def render_preview(grid: SymbolGrid) -> str:
    """Render a grid as framed text for logs and the preview command."""
    border = "+" + "-" * COLUMNS + "+"
    body = [f"|{line}|" for line in grid.preview_lines()]
    return "\n".join([border, *body, border])
