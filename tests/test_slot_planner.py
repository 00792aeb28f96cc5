from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from models.enums import SlotStatus
from services.slot_planner import find_windows, generate


def test_two_hour_event_with_hour_slots():
    slots = generate(datetime(2026, 11, 6, 20, 0), datetime(2026, 11, 6, 22, 0), 60)

    assert [(s.slot_index, s.start_time, s.end_time) for s in slots] == [
        (0, datetime(2026, 11, 6, 20, 0), datetime(2026, 11, 6, 21, 0)),
        (1, datetime(2026, 11, 6, 21, 0), datetime(2026, 11, 6, 22, 0)),
    ]


@pytest.mark.parametrize("minutes_long,duration", [
    (120, 20), (120, 30), (110, 20), (95, 30), (59, 20), (300, 60), (61, 60),
])
def test_slots_pack_back_to_back_without_partial_tail(minutes_long, duration):
    start = datetime(2026, 11, 6, 18, 0)
    end = start + timedelta(minutes=minutes_long)

    slots = generate(start, end, duration)

    assert len(slots) == minutes_long // duration
    assert [s.slot_index for s in slots] == list(range(len(slots)))
    assert slots[0].start_time == start
    for prev, cur in zip(slots, slots[1:]):
        assert cur.start_time == prev.end_time
    assert slots[-1].end_time == start + timedelta(minutes=duration * len(slots))
    assert slots[-1].end_time <= end


def test_range_shorter_than_one_slot_is_empty():
    start = datetime(2026, 11, 6, 20, 0)
    assert generate(start, start + timedelta(minutes=15), 20) == []
    assert generate(start, start, 20) == []
    assert generate(start, start - timedelta(hours=1), 20) == []


def test_generate_is_deterministic():
    start = datetime(2026, 11, 6, 20, 0)
    end = datetime(2026, 11, 7, 2, 0)
    assert generate(start, end, 30) == generate(start, end, 30)


def _slot(index, status=SlotStatus.AVAILABLE):
    return SimpleNamespace(id=f"s{index}", slot_index=index, status=status)


def test_find_windows_skips_runs_with_a_booked_slot():
    slots = [_slot(3), _slot(0), _slot(1, SlotStatus.BOOKED), _slot(2), _slot(4)]

    windows = find_windows(slots, 2)

    assert [[s.id for s in w] for w in windows] == [["s2", "s3"], ["s3", "s4"]]


def test_find_windows_single_and_oversized():
    slots = [_slot(0), _slot(1, SlotStatus.BOOKED)]

    assert [[s.id for s in w] for w in find_windows(slots, 1)] == [["s0"]]
    assert find_windows(slots, 3) == []
    assert find_windows(slots, 0) == []
