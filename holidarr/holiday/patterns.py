"""Static pattern library for the holiday matcher.

All patterns are regular expressions compiled case-insensitively by the
matcher. Nothing in this module performs I/O.
"""

from typing import Dict, List, Tuple

from holidarr.models.holiday import Holiday

CURATED_KEYWORDS: Dict[Holiday, List[str]] = {
    Holiday.HALLOWEEN: [
        r"\bHallowe?en\b",
        r"Treehouse of Horror",
        r"\bSpooktacular\b",
        r"\bJack[- ]o[- ]lantern\b",
        r"\bTrick[- ]?or[- ]?Treat\b",
        r"\bPumpkin[s]?\b",
        r"All Hallows",
        r"October 31",
        r"Samhain",
    ],
    Holiday.THANKSGIVING: [
        r"\bThanksgiving\b",
        r"\bFriendsgiving\b",
        r"\bTurkey\b",
        r"\bPilgrim[s]?\b",
        r"\bParade\b",
        r"\bStuffing\b",
        r"\bCranberries?\b",
        r"\bCornucopia\b",
        r"\bFeast\b",
        r"\bGravy\b",
        r"\bGobble\b",
        r"\bHarvest\b",
        r"\bMacy'?s\b",
        r"\bNFL\b",
    ],
    Holiday.CHRISTMAS: [
        r"\bChristmas\b",
        r"\bX[- ]?mas\b",
        r"\bHoliday Special\b",
        r"\bSanta\b",
        r"\bSt[.]?\s?Nick\b",
        r"\bKris Kringle\b",
        r"\bNorth Pole\b",
        r"\bMrs\.?\s?Claus\b",
        r"\bMistletoe\b",
        r"\bYuletide\b",
        r"\bElf\b",
        r"\bReindeer\b",
        r"\bFrosty\b",
        r"\bSnow(?:man)?\b",
        r"\bSleigh\b",
        r"\bJingle Bells?\b",
        r"\bNativity\b",
        r"\bCarol\b",
        r"\bGift[s]?\b",
        r"\bPresent[s]?\b",
        r"\bSecret Santa\b",
        r"\bHoliday Party\b",
    ],
    Holiday.VALENTINES: [
        r"\bValentine'?s?\b",
        r"\bCupid\b",
        r"\bRomance\b",
        r"\bSweetheart\b",
        r"\bBe My Valentine\b",
        r"\bHeart[- ]?Day\b",
        r"\bDate Night\b",
        r"\bSecret Admirer\b",
        r"\bProposal\b",
        r"\bChocolate\b",
        r"\bRose?s?\b",
        r"\bCandy Hearts?\b",
    ],
}

# Very high confidence signals. Besides their score bonus they suppress every
# other holiday when they appear in a title.
STRONG_INDICATORS: Dict[Holiday, List[str]] = {
    Holiday.HALLOWEEN: [
        r"\bHallowe?en\b",
        r"Treehouse of Horror",
        r"October 31",
        r"All Hallows",
    ],
    Holiday.THANKSGIVING: [
        r"\bThanksgiving\b",
        r"\bFriendsgiving\b",
        r"Turkey Day",
    ],
    Holiday.CHRISTMAS: [
        r"\bChristmas\b",
        r"\bX[- ]?mas\b",
        r"December 25",
        r"\bSanta\b",
        r"Ho Ho Ho",
    ],
    Holiday.VALENTINES: [
        r"\bValentine'?s?\b",
        r"February 14",
        r"\bCupid\b",
    ],
}

# Phrases that contain holiday keywords but are not about the holiday.
# A match in the title or summary vetoes every holiday.
EXCLUDE_PATTERNS: List[str] = [
    r"\bChristmas Island\b",
    r"\bSanta (?:Clarita|Barbara|Monica|Cruz|Fe|Ana|Rosa)\b",
    r"\bTurkey (?:vulture|shootout|buzzard|sandwich)\b",
    r"\bBlack Friday\b",
    r"\bTalking Turkey\b",
    r"\bCold Turkey\b",
    r"\bGhost(?:busters?|writer|town|ship|story)\b",
    r"\bMonster(?:s? Inc|truck|energy|hunter|high)\b",
    r"\bSpooky (?:action|distance)\b",
    r"\bHaunted (?:mansion|house) (?:party|ride|attraction)\b",
    r"\bCandy (?:cane|shop|store|crush|land|factory)\b",
    r"\bSkeleton (?:key|crew|coast)\b",
    r"\bWitch (?:doctor|hazel)\b",
    r"\bPumpkin (?:spice|pie|patch|head|bread|seeds?)\b",
    r"\bCostume (?:party|shop|designer|contest|drama)\b",
    r"\bZombie (?:apocalypse|outbreak|virus|infection|horde)\b",
]

# Canonical movies that belong to a holiday even though their text carries no
# keyword. Matched on normalized title with a one-year tolerance.
REQUIRED_TITLES: Dict[Holiday, List[Tuple[str, int]]] = {
    Holiday.CHRISTMAS: [
        ("A Christmas Carol", 2009),
        ("A Christmas Story", 1983),
        ("Die Hard", 1988),
        ("Home Alone", 1990),
        ("Home Alone 2: Lost in New York", 1992),
        ("Scrooged", 1988),
        ("Gremlins", 1984),
        ("Krampus", 2015),
        ("Klaus", 2019),
        ("The Grinch", 2018),
        ("The Polar Express", 2004),
        ("It's a Wonderful Life", 1946),
        ("Miracle on 34th Street", 1947),
        ("Miracle on 34th Street", 1994),
        ("Love Actually", 2003),
        ("The Holiday", 2006),
        ("Jingle All the Way", 1996),
        ("White Christmas", 1954),
    ],
    Holiday.HALLOWEEN: [
        ("Hocus Pocus", 1993),
        ("Beetlejuice", 1988),
        ("The Nightmare Before Christmas", 1993),
        ("Trick 'r Treat", 2007),
        ("Casper", 1995),
        ("Coraline", 2009),
        ("Practical Magic", 1998),
        ("The Addams Family", 1991),
        ("Addams Family Values", 1993),
        ("It's the Great Pumpkin, Charlie Brown", 1966),
        ("Halloweentown", 1998),
    ],
    Holiday.THANKSGIVING: [
        ("Planes, Trains and Automobiles", 1987),
        ("Pieces of April", 2003),
        ("Home for the Holidays", 1995),
        ("Free Birds", 2013),
        ("Dutch", 1991),
        ("The Ice Storm", 1997),
        ("A Charlie Brown Thanksgiving", 1973),
    ],
    Holiday.VALENTINES: [
        ("Valentine's Day", 2010),
        ("My Bloody Valentine", 1981),
        ("Be My Valentine, Charlie Brown", 1975),
        ("Sleepless in Seattle", 1993),
    ],
}

# Reference wiki pages listing holiday-themed specials and episodes
WIKI_SOURCES: Dict[Holiday, List[str]] = {
    Holiday.HALLOWEEN: [
        "https://en.wikipedia.org/wiki/List_of_Halloween_television_specials",
        "https://en.wikipedia.org/wiki/Category:Halloween_television_specials",
        "https://en.wikipedia.org/wiki/Category:Halloween_television_episodes",
    ],
    Holiday.THANKSGIVING: [
        "https://en.wikipedia.org/wiki/List_of_Thanksgiving_television_specials",
        "https://en.wikipedia.org/wiki/Category:Thanksgiving_television_specials",
    ],
    Holiday.CHRISTMAS: [
        "https://en.wikipedia.org/wiki/List_of_Christmas_television_specials",
        "https://en.wikipedia.org/wiki/List_of_United_States_Christmas_television_episodes",
        "https://en.wikipedia.org/wiki/List_of_United_States_Christmas_television_specials",
        "https://en.wikipedia.org/wiki/Lists_of_Christmas_television_episodes",
    ],
    Holiday.VALENTINES: [
        "https://en.wikipedia.org/wiki/List_of_Valentine%27s_Day_television_specials",
        "https://en.wikipedia.org/wiki/Category:Valentine%27s_Day_television_specials",
    ],
}

TITLE_CACHE_PREFIX = "titles::"

DEFAULT_MATCH_THRESHOLD = 8
