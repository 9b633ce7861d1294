"""Tests for the declarative screen layouts and the layout classifier."""

import pytest

from tradepaste.parsers.layouts import (
    DEFAULT_LAYOUTS,
    GRID,
    LEGACY,
    MOBILE,
    TABULAR,
    VIETNAMESE,
    Layout,
    caption,
    classify_layouts,
    extend_layouts,
    rule,
)

from tradepaste.tests.samples import (
    GRID_SEQUENTIAL_TEXT,
    GRID_STACKED_TEXT,
    LEGACY_TEXT,
    MOBILE_TEXT,
    TABULAR_ROW,
    VN_TEXT,
)


class TestTabular:
    def test_spreadsheet_row(self):
        r = TABULAR.extract(TABULAR_ROW)
        assert r["open_price"] == pytest.approx(2860.90)
        assert r["close_price"] == pytest.approx(2827.45)
        assert r["open_time"] == "2025-12-01T10:19:16"
        assert r["close_time"] == "2025-12-01T10:39:12"
        assert r["quantity"] == pytest.approx(15.00)
        assert r["coin"] == "ETH"
        assert r["fee"] == pytest.approx(42.66)
        assert r["pnl"] == pytest.approx(-501.75)

    def test_european_grouping_and_currency(self):
        row = "2.860,90\t2.827,45\t1/12/2025 10:19:16\t1/12/2025 10:39:12\t15,00\tETH\t$42,66\t-$501,75"
        r = TABULAR.extract(row)
        assert r["open_price"] == pytest.approx(2860.90)
        assert r["fee"] == pytest.approx(42.66)
        assert r["pnl"] == pytest.approx(-501.75)

    def test_trailing_newline_is_ignored(self):
        assert TABULAR.matches(TABULAR_ROW + "\r\n")

    def test_open_position_leaves_close_fields_out(self):
        row = "2860,90\t\t1/12/2025 10:19:16\t\t15,00\tETH\t0,00\t0,00"
        r = TABULAR.extract(row)
        assert "close_price" not in r
        assert "close_time" not in r

    def test_wrong_column_count(self):
        assert TABULAR.extract("2860,90\t2827,45\tETH") is None
        assert TABULAR.extract(TABULAR_ROW + "\textra") is None

    def test_first_cell_must_be_numeric(self):
        row = "Price\t2827,45\t1/12/2025 10:19:16\t1/12/2025 10:39:12\t15,00\tETH\t42,66\t-501,75"
        assert TABULAR.extract(row) is None


class TestVietnamese:
    def test_all_fields(self):
        r = VIETNAMESE.extract(VN_TEXT)
        assert r["coin"] == "ETH"
        assert r["quantity"] == pytest.approx(15.0)
        assert r["open_price"] == pytest.approx(2860.90)
        assert r["close_price"] == pytest.approx(2827.45)
        assert r["fee"] == pytest.approx(42.66)
        assert r["pnl"] == pytest.approx(-501.75)
        assert r["leverage"] == 50

    def test_dates_are_positional(self):
        r = VIETNAMESE.extract(VN_TEXT)
        assert r["open_time"] == "2025-12-01T10:19:16"
        assert r["close_time"] == "2025-12-01T14:39:12"

    def test_single_date_is_open_time_only(self):
        text = "Giá Mở\n2.860,90\nNgày\n01/12/2025 10:19:16 SA\n"
        r = VIETNAMESE.extract(text)
        assert r["open_time"] == "2025-12-01T10:19:16"
        assert "close_time" not in r

    def test_anchor_missing(self):
        assert VIETNAMESE.extract("Coin\nETH\nSL\n15,00\n") is None


class TestGrid:
    def test_stacked(self):
        r = GRID.extract(GRID_STACKED_TEXT)
        assert r["open_time"] == "2025-12-17T10:16:52"
        assert r["open_price"] == pytest.approx(2954.58)
        assert r["quantity"] == pytest.approx(40.01)
        assert r["coin"] == "ETH"
        assert r["close_time"] == "2025-12-17T10:38:23"
        assert r["close_price"] == pytest.approx(2944.40)
        assert r["fee"] == pytest.approx(118.01)
        assert r["pnl"] == pytest.approx(-407.30)
        assert r["leverage"] == 100

    def test_stacked_tab_separated_rows(self):
        text = (
            "Open Time\tOpening Average Price\tPosition Size\n"
            "2025-12-17 10:16:52\t2,954.58\t40.01 ETH\n"
        )
        r = GRID.extract(text)
        assert r["open_time"] == "2025-12-17T10:16:52"
        assert r["open_price"] == pytest.approx(2954.58)
        assert r["quantity"] == pytest.approx(40.01)

    def test_sequential(self):
        r = GRID.extract(GRID_SEQUENTIAL_TEXT)
        assert r["open_time"] == "2025-12-17T10:16:52"
        assert r["open_price"] == pytest.approx(96500.5)
        assert r["close_time"] == "2025-12-17T11:00:00"
        assert r["close_price"] == pytest.approx(97000.0)
        assert r["quantity"] == pytest.approx(0.25)
        assert r["coin"] == "BTC"
        assert r["fee"] == pytest.approx(3.10)
        assert r["pnl"] == pytest.approx(125.0)
        assert r["leverage"] == 50

    def test_symbol_and_timestamps_fallback(self):
        text = (
            "SOLUSDT Perpetual 25x\n"
            "Opening Average Price\n"
            "142.35\n"
            "opened 2025-12-01 09:00:00, closed 2025-12-01 12:30:00\n"
        )
        r = GRID.extract(text)
        assert r["coin"] == "SOL"
        assert r["leverage"] == 25
        assert r["open_time"] == "2025-12-01T09:00:00"
        assert r["close_time"] == "2025-12-01T12:30:00"

    def test_date_is_never_read_as_price(self):
        text = "Opening Average Price\n2025-12-17 10:16:52\n"
        r = GRID.extract(text)
        assert "open_price" not in r

    def test_funding_fee_is_not_the_fee(self):
        text = "Opening Average Price\n100.5\nFunding Fee\n-9.99\n"
        r = GRID.extract(text)
        assert "fee" not in r

    def test_excluded_when_entry_price_present(self):
        assert not GRID.matches(LEGACY_TEXT)


class TestMobile:
    def test_all_fields(self):
        r = MOBILE.extract(MOBILE_TEXT)
        assert r["open_time"] == "2025-12-17T10:16:52"
        assert r["close_time"] == "2025-12-17T10:38:23"
        assert r["open_price"] == pytest.approx(2954.58)
        assert r["close_price"] == pytest.approx(2944.40)
        assert r["quantity"] == pytest.approx(40.01)
        assert r["coin"] == "ETH"
        assert r["fee"] == pytest.approx(118.01)
        assert r["leverage"] == 100

    def test_closing_pnl_beats_position_pnl(self):
        r = MOBILE.extract(MOBILE_TEXT)
        assert r["pnl"] == pytest.approx(-407.30)

    def test_position_pnl_used_when_alone(self):
        text = MOBILE_TEXT.replace("Closing PnL\n-407.30\n", "")
        r = MOBILE.extract(text)
        assert r["pnl"] == pytest.approx(-300.00)

    def test_leverage_glued_to_pair(self):
        text = MOBILE_TEXT.replace("ETHUSDT 100X", "ETHUSDT100X")
        assert MOBILE.extract(text)["leverage"] == 100

    def test_price_digits_are_not_leverage(self):
        text = MOBILE_TEXT.replace("ETHUSDT 100X", "ETHUSDT 2.5x")
        assert "leverage" not in MOBILE.extract(text)

    def test_max_held_quantity(self):
        text = "Time Opened\n2025-12-17 10:16:52\nEntry Price\n2,954.58\nMax Held\n12.5 ETH\n"
        r = MOBILE.extract(text)
        assert r["quantity"] == pytest.approx(12.5)
        assert r["coin"] == "ETH"


class TestLegacy:
    def test_all_fields(self):
        r = LEGACY.extract(LEGACY_TEXT)
        assert r["open_price"] == pytest.approx(3100.25)
        assert r["close_price"] == pytest.approx(3150.75)
        assert r["open_time"] == "2025-11-02T08:00:00"
        assert r["close_time"] == "2025-11-02T09:30:00"
        assert r["quantity"] == pytest.approx(2.5)
        assert r["coin"] == "ETH"
        assert r["fee"] == pytest.approx(1.55)
        assert r["pnl"] == pytest.approx(126.25)
        assert r["leverage"] == 20

    def test_not_claimed_when_time_opened_present(self):
        assert not LEGACY.matches(MOBILE_TEXT)


class TestClassifyLayouts:
    def test_each_sample_has_one_layout(self):
        assert classify_layouts(TABULAR_ROW) == ["tabular"]
        assert classify_layouts(VN_TEXT) == ["vietnamese"]
        assert classify_layouts(GRID_STACKED_TEXT) == ["grid"]
        assert classify_layouts(GRID_SEQUENTIAL_TEXT) == ["grid"]
        assert classify_layouts(MOBILE_TEXT) == ["mobile"]
        assert classify_layouts(LEGACY_TEXT) == ["legacy"]

    def test_overlap_listed_in_priority_order(self):
        text = VN_TEXT + "Open Time\n"
        assert classify_layouts(text) == ["vietnamese", "grid"]

    def test_no_match(self):
        assert classify_layouts("bought some eth yesterday") == []


class TestExtendLayouts:
    CUSTOM = Layout(
        name="custom",
        anchors_any=("Avg Entry",),
        rules=(rule("open_price", caption("Avg Entry")),),
    )

    def test_appended_last_by_default(self):
        layouts = extend_layouts(DEFAULT_LAYOUTS, self.CUSTOM)
        assert [layout.name for layout in layouts][-1] == "custom"
        assert len(DEFAULT_LAYOUTS) == 5

    def test_insert_before(self):
        layouts = extend_layouts(DEFAULT_LAYOUTS, self.CUSTOM, before="grid")
        names = [layout.name for layout in layouts]
        assert names.index("custom") == names.index("grid") - 1

    def test_duplicate_name_rejected(self):
        with pytest.raises(ValueError):
            extend_layouts(DEFAULT_LAYOUTS, VIETNAMESE)

    def test_unknown_anchor_layout_rejected(self):
        with pytest.raises(ValueError):
            extend_layouts(DEFAULT_LAYOUTS, self.CUSTOM, before="nope")

    def test_custom_layout_extracts(self):
        assert self.CUSTOM.extract("Avg Entry\n1.234,5\n") == {"open_price": pytest.approx(1234.5)}
