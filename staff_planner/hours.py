from __future__ import annotations

HOURS_QUANTUM = 4


def round_to_quantum(raw: float, quantum: int = HOURS_QUANTUM) -> float:
    """Round weekly hours to the nearest multiple of ``quantum``.

    A positive value never rounds down to zero; it is floored to one quantum.
    """
    if raw <= 0:
        return 0
    # halves round up: 2 -> 4, 6 -> 8
    rounded = int(raw / quantum + 0.5) * quantum
    if rounded == 0:
        return quantum
    return rounded


def weekly_allocation_hours(phase_hours: float, percentage: float, duration: int) -> float:
    if duration <= 0:
        return 0
    staff_hours = phase_hours * percentage / 100
    if staff_hours <= 0:
        return 0
    return round_to_quantum(staff_hours / duration)
