"""Tests for board layout."""

from datetime import date

import pytest

from fundraiser_board.core.config import MessageConfig
from fundraiser_board.core.errors import LayoutError
from fundraiser_board.display.charset import COLUMNS, ROWS, Color, SymbolGrid, encode, render_preview
from fundraiser_board.display.formatter import (
    MessageTemplate,
    build_row,
    fit_row,
    format_as_of,
    format_currency,
    format_message,
)


class TestBuildRow:
    def test_help_rebuild_with_orange_tiles(self):
        row = build_row("Help Rebuild", Color.ORANGE, 2)

        assert row == [
            0, 0, 0,
            64, 64,
            8, 5, 12, 16, 0, 18, 5, 2, 21, 9, 12, 4,
            64, 64,
            0, 0, 0,
        ]

    @pytest.mark.parametrize(
        "text",
        ["", "A", "AB", "THE BEV!", "THANK YOU!", "$12,345", "X" * 21, "X" * 22],
    )
    def test_centering_without_decoration(self, text):
        row = build_row(text)
        n = len(text)
        left = (COLUMNS - n) // 2
        right = COLUMNS - n - left

        assert len(row) == COLUMNS
        assert row[:left] == [0] * left
        assert row[left:left + n] == encode(text)
        assert row[COLUMNS - right:] == [0] * right

    @pytest.mark.parametrize("text,tiles", [("GO", 1), ("THE BEV!", 3), ("THANK YOU!", 4), ("ABCDEFGHIJKLMNOPQR", 2)])
    def test_centering_counts_decoration_tiles(self, text, tiles):
        row = build_row(text, Color.GREEN, tiles)
        n = len(text) + 2 * tiles
        left = (COLUMNS - n) // 2

        assert len(row) == COLUMNS
        assert row[:left] == [0] * left
        assert row[left:left + tiles] == [Color.GREEN] * tiles
        assert row[left + tiles + len(text):left + n] == [Color.GREEN] * tiles

    def test_lowercase_and_unknown_characters(self):
        assert build_row("help") == build_row("HELP")
        assert encode("a~b") == [1, 0, 2]

    def test_overflow_is_not_truncated(self):
        row = build_row("X" * 20, Color.RED, 2)

        assert len(row) == 24
        assert row[:2] == [Color.RED, Color.RED]
        assert row[-2:] == [Color.RED, Color.RED]


class TestFitRow:
    def test_fitting_row_is_unchanged(self):
        assert fit_row("Help Rebuild", Color.ORANGE, 2) == build_row("Help Rebuild", Color.ORANGE, 2)

    def test_drops_tiles_until_row_fits(self):
        row = fit_row("X" * 20, Color.ORANGE, 2)

        assert row == [64] + [24] * 20 + [64]

    def test_drops_decoration_entirely(self):
        assert fit_row("X" * 21, Color.ORANGE, 3) == [24] * 21 + [0]

    def test_text_wider_than_board_raises(self):
        with pytest.raises(LayoutError):
            fit_row("X" * 23)


class TestFormatCurrency:
    @pytest.mark.parametrize(
        "amount,expected",
        [
            (0, "$0"),
            (999.49, "$999"),
            (12345, "$12,345"),
            (12345.0, "$12,345"),
            (12345.5, "$12,346"),
            (12344.5, "$12,345"),
            (1234567.89, "$1,234,568"),
        ],
    )
    def test_whole_dollars(self, amount, expected):
        assert format_currency(amount) == expected

    @pytest.mark.parametrize("amount", [0, 0.4, 7.99, 1000.01, 98765.432, 10 ** 9 + 0.5])
    def test_never_shows_fractional_digits(self, amount):
        assert "." not in format_currency(amount)


class TestFormatMessage:
    def test_grid_shape(self):
        grid = format_message(12345.0, date(2024, 3, 4))

        assert len(grid.rows) == ROWS
        assert all(len(row) == COLUMNS for row in grid.rows)

    def test_fixed_lines(self):
        rows = format_message(12345.0).rows

        assert list(rows[0]) == build_row("Help Rebuild", Color.ORANGE, 2)
        assert list(rows[1]) == build_row("The Bev!", Color.ORANGE, 3)
        assert list(rows[2]) == [Color.ORANGE] * COLUMNS
        assert list(rows[3]) == build_row("$12,345", Color.GREEN, 2)
        assert list(rows[5]) == build_row("Thank You!", Color.ORANGE, 4)

    def test_as_of_line(self):
        rows = format_message(12345.0, date(2024, 3, 4)).rows

        assert list(rows[4]) == build_row("Raised as of Mar 4")

    def test_without_date(self):
        rows = format_message(12345.0).rows

        assert list(rows[4]) == build_row("Raised")

    def test_long_label_drops_date_suffix(self, caplog):
        template = MessageTemplate.from_config(MessageConfig(amount_label="Total Raised So Far"))

        rows = format_message(12345.0, date(2024, 9, 30), template).rows

        assert list(rows[4]) == build_row("Total Raised So Far")
        assert "too long for the date suffix" in caplog.text

    def test_label_that_just_fits_keeps_date(self):
        template = MessageTemplate.from_config(MessageConfig(amount_label="Collected"))

        rows = format_message(12345.0, date(2024, 9, 30), template).rows

        assert list(rows[4]) == build_row("Collected as of Sep 30")

    def test_large_amount_still_fits(self):
        grid = format_message(123456789012.0)

        assert all(len(row) == COLUMNS for row in grid.rows)
        assert "$123,456,789,012" in grid.preview_lines()[3]

    def test_template_from_config(self):
        template = MessageTemplate.from_config(
            MessageConfig(title="Go Team", accent_color="blue", amount_color="yellow")
        )
        rows = format_message(50, template=template).rows

        assert list(rows[0]) == build_row("Go Team", Color.BLUE, 2)
        assert list(rows[2]) == [Color.BLUE] * COLUMNS
        assert list(rows[3]) == build_row("$50", Color.YELLOW, 2)

    def test_is_deterministic(self):
        assert format_message(42.0, date(2024, 1, 9)) == format_message(42.0, date(2024, 1, 9))


@pytest.mark.parametrize(
    "day,expected",
    [
        (date(2024, 1, 1), "as of Jan 1"),
        (date(2024, 3, 4), "as of Mar 4"),
        (date(2024, 9, 30), "as of Sep 30"),
        (date(2024, 12, 25), "as of Dec 25"),
    ],
)
def test_format_as_of(day, expected):
    assert format_as_of(day) == expected


class TestSymbolGrid:
    def test_rejects_wrong_row_count(self):
        with pytest.raises(LayoutError):
            SymbolGrid.from_rows([[0] * COLUMNS] * 5)

    def test_rejects_wrong_row_width(self):
        rows = [[0] * COLUMNS] * 5 + [[0] * 23]
        with pytest.raises(LayoutError):
            SymbolGrid.from_rows(rows)

    def test_payload_is_plain_lists(self):
        payload = format_message(1.0).to_payload()

        assert isinstance(payload, list)
        assert all(isinstance(row, list) for row in payload)

    def test_preview(self):
        preview = render_preview(format_message(12345.0, date(2024, 3, 4)))

        assert "██HELP REBUILD██" in preview
        assert "$12,345" in preview
        assert "RAISED AS OF MAR 4" in preview
        assert len(preview.splitlines()) == ROWS + 2
