"""Holiday pattern library and matcher."""

from holidarr.holiday.matcher import HolidayMatcher

__all__ = ["HolidayMatcher"]
