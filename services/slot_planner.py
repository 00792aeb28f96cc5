"""Turn an event's time range into bookable slot definitions.

Nothing here touches the database; ``services.events.publish_event`` turns
the plan into ``TimeSlot`` rows.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from models.enums import SlotStatus


@dataclass(frozen=True)
class SlotDefinition:
    slot_index: int
    start_time: datetime
    end_time: datetime


def generate(start_time: datetime, end_time: datetime, slot_duration_minutes: int) -> list[SlotDefinition]:
    """
    Pack slots back-to-back from start_time. A trailing slot that would run
    past end_time is dropped, so the count is floor((end - start) / duration).
    An empty list means nothing fits; callers decide whether that is an error.
    """
    if slot_duration_minutes <= 0:
        return []

    step = timedelta(minutes=slot_duration_minutes)
    slots = []
    current = start_time
    index = 0
    while current + step <= end_time:
        slots.append(SlotDefinition(slot_index=index, start_time=current, end_time=current + step))
        current += step
        index += 1
    return slots


def find_windows(slots, count: int) -> list:
    """
    Every run of `count` slots with consecutive indices that are all
    available, in index order. `slots` is any iterable of objects with
    slot_index and status (TimeSlot rows).
    """
    if count < 1:
        return []

    ordered = sorted(slots, key=lambda s: s.slot_index)
    windows = []
    for i in range(len(ordered) - count + 1):
        window = ordered[i:i + count]
        if any(s.status != SlotStatus.AVAILABLE for s in window):
            continue
        if all(window[j].slot_index == window[j - 1].slot_index + 1 for j in range(1, count)):
            windows.append(window)
    return windows
