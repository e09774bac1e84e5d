import math

from ledger_server.ledger.rows import AssetColumns, parse_asset_rows, parse_number, parse_performance_rows


def _asset(name="", symbol="", qty="", price="", ts="", ext_id="", change="") -> list:
    row = [""] * 12
    row[0], row[1], row[6], row[7], row[9], row[10], row[11] = name, symbol, qty, price, ts, ext_id, change
    return row


def test_parse_number_accepts_plain_and_formatted_values() -> None:
    assert parse_number(42).value == 42.0
    assert parse_number("1,234.5").value == 1234.5
    assert parse_number("$40,000").value == 40000.0
    assert parse_number("(12.5)").value == -12.5
    assert math.isclose(parse_number("5.23%").value, 0.0523)
    assert parse_number(" 7 ").was_defaulted is False


def test_parse_number_defaults_garbage_to_zero() -> None:
    for cell in ["invalid", "", None, True, float("nan"), "inf", "#N/A"]:
        parsed = parse_number(cell)
        assert parsed.value == 0.0
        assert parsed.was_defaulted is True


def test_parse_asset_rows_maps_columns_and_row_numbers() -> None:
    raw = [
        _asset("Bitcoin", "btc", 1.5, 40000, "2024-03-05T12:00:00Z", "bitcoin", 0.012),
        _asset(),
        _asset("Mystery", "XYZ", "abc", "n/a", "", "", ""),
    ]
    rows = parse_asset_rows(raw, AssetColumns(), first_row_index=2)

    assert [row.symbol for row in rows] == ["BTC", "XYZ"]
    btc, xyz = rows
    assert btc.row_index == 2
    assert btc.quantity == 1.5
    assert btc.current_price == 40000.0
    assert btc.external_id == "bitcoin"
    assert btc.price_change_24h == 0.012
    assert btc.current_value == 60000.0
    assert xyz.row_index == 4
    assert xyz.quantity == 0.0
    assert xyz.current_price == 0.0
    assert xyz.external_id is None
    assert xyz.price_change_24h is None


def test_parse_asset_rows_clamps_negative_quantity_and_handles_short_rows() -> None:
    rows = parse_asset_rows([["Short", "ETH", "", "", "", "", -3]])
    assert len(rows) == 1
    assert rows[0].quantity == 0.0
    assert rows[0].external_id is None
    assert rows[0].last_price_update == ""


def test_parse_performance_rows_keeps_row_with_invalid_aum() -> None:
    raw = [["", "Jan-2024", "", "", "", "", "invalid", 0.0523, 0.10, "", "", 0.02, 0.05, "", "", 0.01, 0.03]]
    records = parse_performance_rows(raw)
    assert len(records) == 1
    record = records[0]
    assert record.month == "Jan-2024"
    assert record.ending_aum == 0.0
    assert record.fund_mom == 0.0523
    assert record.fund_cumulative == 0.10
    assert record.benchmark_mom == 0.02
    assert record.benchmark2_cumulative == 0.03
    assert record.row_index == 2


def test_parse_performance_rows_renders_serial_month_cells() -> None:
    # 45292 is 2024-01-01
    records = parse_performance_rows([["", 45292, "", "", "", "", 1000]])
    assert records[0].month == "Jan-2024"
    assert records[0].ending_aum == 1000.0
