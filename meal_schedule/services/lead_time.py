"""
Lead-time calculation
Hours between a request deadline and the start of the meal service, on a
repeating weekly cycle.
"""

from ..models.schedule import DAY_INDEX

HOURS_PER_WEEK = 7 * 24


def _decimal_hours(value: str) -> float:
    hours, minutes = value.split(":")
    return int(hours) + int(minutes) / 60


def lead_time_hours(
    request_day: str,
    request_time: str,
    meal_day: str,
    meal_time: str,
    meal_starts_previous_day: bool = False,
) -> float:
    """
    Hours from the request instant to the meal instant, in (0, 168]

    Args:
        request_day: weekday of the deadline
        request_time: deadline time "HH:MM"
        meal_day: weekday the meal belongs to
        meal_time: service start "HH:MM"
        meal_starts_previous_day: service starts the day before meal_day

    A deadline at the same instant as the meal counts as a full week ahead.
    """
    meal_day_index = DAY_INDEX[meal_day]
    if meal_starts_previous_day:
        meal_day_index = (meal_day_index - 1) % 7

    request_abs = DAY_INDEX[request_day] * 24 + _decimal_hours(request_time)
    meal_abs = meal_day_index * 24 + _decimal_hours(meal_time)

    diff = meal_abs - request_abs
    if diff <= 0:
        diff += HOURS_PER_WEEK
    return diff
