"""Holiday labels shared by the matcher, the AI classifier and the store."""

from enum import Enum
from typing import Dict, Tuple


class Holiday(str, Enum):
    """Recognized holidays.

    The value is the canonical display name. It is also what gets persisted
    and serialized, so existing values must never be renamed.
    """

    CHRISTMAS = "Christmas"
    THANKSGIVING = "Thanksgiving"
    HALLOWEEN = "Halloween"
    NEW_YEARS = "New Years"
    HANUKKAH = "Hanukkah"
    KWANZAA = "Kwanzaa"
    EASTER = "Easter"
    VALENTINES = "Valentine's Day"
    INDEPENDENCE_DAY = "Independence Day"
    ST_PATRICKS = "St. Patrick's Day"
    APRIL_FOOLS = "April Fools"
    MOTHERS_DAY = "Mother's Day"
    FATHERS_DAY = "Father's Day"
    LABOR_DAY = "Labor Day"
    MEMORIAL_DAY = "Memorial Day"
    VETERANS_DAY = "Veterans Day"
    MARDI_GRAS = "Mardi Gras"
    DIA_DE_LOS_MUERTOS = "Dia de los Muertos"
    CHINESE_NEW_YEAR = "Chinese New Year"
    DIWALI = "Diwali"
    RAMADAN = "Ramadan"
    WINTER_HOLIDAY = "Winter Holiday"
    GENERIC_HOLIDAY = "Generic Holiday"

    def __str__(self) -> str:
        return self.value


# Holidays with hand-tuned keyword weights in the pattern matcher
CURATED_HOLIDAYS: Tuple[Holiday, ...] = (
    Holiday.HALLOWEEN,
    Holiday.THANKSGIVING,
    Holiday.CHRISTMAS,
    Holiday.VALENTINES,
)

# Lowercase tokens the AI backend is allowed to answer with
AI_HOLIDAY_TOKENS: Dict[str, Holiday] = {
    "christmas": Holiday.CHRISTMAS,
    "thanksgiving": Holiday.THANKSGIVING,
    "halloween": Holiday.HALLOWEEN,
    "new_years": Holiday.NEW_YEARS,
    "hanukkah": Holiday.HANUKKAH,
    "kwanzaa": Holiday.KWANZAA,
    "easter": Holiday.EASTER,
    "valentine": Holiday.VALENTINES,
    "independence_day": Holiday.INDEPENDENCE_DAY,
    "st_patricks": Holiday.ST_PATRICKS,
    "april_fools": Holiday.APRIL_FOOLS,
    "mothers_day": Holiday.MOTHERS_DAY,
    "fathers_day": Holiday.FATHERS_DAY,
    "labor_day": Holiday.LABOR_DAY,
    "memorial_day": Holiday.MEMORIAL_DAY,
    "veterans_day": Holiday.VETERANS_DAY,
    "mardi_gras": Holiday.MARDI_GRAS,
    "dia_de_los_muertos": Holiday.DIA_DE_LOS_MUERTOS,
    "chinese_new_year": Holiday.CHINESE_NEW_YEAR,
    "diwali": Holiday.DIWALI,
    "ramadan": Holiday.RAMADAN,
    "generic_winter_holiday": Holiday.WINTER_HOLIDAY,
    "generic_holiday": Holiday.GENERIC_HOLIDAY,
}
