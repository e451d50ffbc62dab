"""Board display subsystem.

Provides:
- Vestaboard character codes and the 6x22 SymbolGrid
- Fundraiser message layout
- Publisher for the Vestaboard Subscription API
"""

from .charset import COLUMNS, ROWS, Color, SymbolGrid, encode, render_preview
from .formatter import MessageTemplate, build_row, fit_row, format_currency, format_message
from .publisher import BoardPublisher, PublishOutcome, PublishResult, PublishStatus

__all__ = [
    "COLUMNS",
    "ROWS",
    "Color",
    "SymbolGrid",
    "encode",
    "render_preview",
    "MessageTemplate",
    "build_row",
    "fit_row",
    "format_currency",
    "format_message",
    "BoardPublisher",
    "PublishOutcome",
    "PublishResult",
    "PublishStatus",
]
