"""Change event parsing and filter expression tests."""

import pytest

from housesync.realtime.events import (
    ChangeEvent,
    ConnectionState,
    EventKind,
    normalize_events,
)
from housesync.realtime.filters import RowFilter, parse_filter


# ─── ChangeEvent ────────────────────────────────────────


def test_from_payload_normalises_empty_rows():
    event = ChangeEvent.from_payload({"eventType": "INSERT", "new": {"id": 1}, "old": {}})
    assert event.kind is EventKind.INSERT
    assert event.record == {"id": 1}
    assert event.previous_record is None
    assert event.row_id == 1


def test_delete_row_id_comes_from_old_row():
    event = ChangeEvent.from_payload({"eventType": "DELETE", "new": {}, "old": {"id": "e3"}})
    assert event.record is None
    assert event.row_id == "e3"


def test_unknown_event_type_raises():
    with pytest.raises(ValueError):
        ChangeEvent.from_payload({"eventType": "TRUNCATE"})


@pytest.mark.parametrize(
    "payload",
    [
        [1, 2],
        {"eventType": "INSERT", "new": [1, 2], "old": {}},
        {"eventType": "DELETE", "new": {}, "old": "c1"},
    ],
)
def test_non_object_payload_or_rows_raise(payload):
    with pytest.raises(ValueError):
        ChangeEvent.from_payload(payload)


def test_normalize_events_accepts_strings():
    assert normalize_events(["INSERT", EventKind.DELETE]) == (EventKind.INSERT, EventKind.DELETE)


def test_connection_state_labels():
    assert ConnectionState.CONNECTED.label == "Live"
    assert ConnectionState.RECONNECTING.label == "Reconnecting..."
    assert ConnectionState.DISCONNECTED.label == "Offline"


# ─── Filters ────────────────────────────────────────────


def test_parse_eq_filter():
    f = parse_filter("assigned_to=eq.42")
    assert f == RowFilter("assigned_to", "eq", "42")
    assert f.matches({"assigned_to": 42})
    assert not f.matches({"assigned_to": 7})
    assert not f.matches({"other": 42})
    assert not f.matches(None)


def test_value_may_contain_dots():
    f = parse_filter("sleep_hours=lt.5.5")
    assert f.value == "5.5"
    assert f.matches({"sleep_hours": 5})
    assert not f.matches({"sleep_hours": 6})


@pytest.mark.parametrize(
    "expression,record,expected",
    [
        ("total_points=gte.100", {"total_points": 100}, True),
        ("total_points=gt.100", {"total_points": 100}, False),
        ("total_points=lte.100", {"total_points": 99}, True),
        ("status=neq.completed", {"status": "pending"}, True),
        ("status=in.(pending,approved)", {"status": "approved"}, True),
        ("status=in.(pending,approved)", {"status": "completed"}, False),
        ("total_points=gt.10", {"total_points": "n/a"}, False),
        ("archived=eq.false", {"archived": False}, True),
        ("deadline=eq.null", {"deadline": None}, True),
    ],
)
def test_filter_operators(expression, record, expected):
    assert parse_filter(expression).matches(record) is expected


@pytest.mark.parametrize(
    "expression",
    ["assigned_to", "assigned_to=42", "=eq.1", "points=like.1", "status=in.pending"],
)
def test_malformed_filters_raise(expression):
    with pytest.raises(ValueError):
        parse_filter(expression)


def test_non_object_row_never_matches():
    row_filter = parse_filter("assigned_to=eq.p1")
    assert not row_filter.matches(["assigned_to"])
    assert not row_filter.matches("assigned_to")
