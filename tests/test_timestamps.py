from datetime import datetime, timezone

from ledger_server.ledger.timestamps import format_timestamp, parse_serial_date, parse_timestamp


def test_parse_timestamp_handles_iso_slash_and_serial_forms() -> None:
    assert parse_timestamp("2024-03-05T12:00:00Z") == datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)
    assert parse_timestamp("03/05/2024, 12:30:00") == datetime(2024, 3, 5, 12, 30, tzinfo=timezone.utc)
    assert parse_timestamp("3/5/2024") == datetime(2024, 3, 5, tzinfo=timezone.utc)
    assert parse_timestamp(45356.5) == datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)
    assert parse_timestamp("45356") == datetime(2024, 3, 5, tzinfo=timezone.utc)


def test_parse_timestamp_converts_offsets_to_utc() -> None:
    parsed = parse_timestamp("2024-03-05T14:00:00+02:00")
    assert parsed == datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)


def test_parse_timestamp_never_raises_on_noise() -> None:
    for value in ["", None, "yesterday", "13/45/2024", "-5", 0, True, [], "2024-99-99"]:
        assert parse_timestamp(value) is None


def test_parse_serial_date_rejects_out_of_range() -> None:
    assert parse_serial_date(0) is None
    assert parse_serial_date(3_000_000) is None
    assert parse_serial_date(float("nan")) is None


def test_format_timestamp_is_utc_with_z_suffix() -> None:
    value = datetime(2024, 3, 5, 12, 0, 7, 123456, tzinfo=timezone.utc)
    assert format_timestamp(value) == "2024-03-05T12:00:07Z"
    assert format_timestamp(datetime(2024, 3, 5, 12, 0)) == "2024-03-05T12:00:00Z"
