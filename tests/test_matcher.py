import pytest

from holidarr.holiday.matcher import HolidayMatcher, normalize_title, title_to_pattern
from holidarr.models.holiday import CURATED_HOLIDAYS, Holiday
from holidarr.models.media import Episode, Movie


def _episode(title, summary=None, external_id="ep", series="Some Show"):
    return Episode(
        external_id=external_id,
        title=title,
        summary=summary,
        series_title=series,
        season_number=1,
        episode_number=1,
    )


def _movie(title, year=None, summary=None, external_id="mv"):
    return Movie(external_id=external_id, title=title, year=year, summary=summary)


@pytest.fixture
def matcher():
    return HolidayMatcher()


def test_title_keyword_scores_higher_than_summary(matcher):
    """A keyword in the title is worth more than the same keyword in the summary."""
    in_title = _episode("Christmas Party")
    in_summary = _episode("Office Party", summary="A Christmas party at the office.")

    assert matcher.score(in_title, Holiday.CHRISTMAS) == 10 + 15
    assert matcher.score(in_summary, Holiday.CHRISTMAS) == 3 + 5


def test_summary_only_signal_can_stay_below_threshold(matcher):
    item = _episode("The Drive", summary="They stop to buy a gift.")
    assert matcher.score(item, Holiday.CHRISTMAS) == 3
    assert not matcher.is_match(item, Holiday.CHRISTMAS)


def test_exclude_pattern_vetoes_score(matcher):
    """Santa Clarita is a place, not a Christmas signal."""
    item = _episode("Road Trip", summary="The gang drives to Santa Clarita for Christmas.")
    assert matcher.score(item, Holiday.CHRISTMAS) == 0


def test_exclude_pattern_in_title_vetoes_every_holiday(matcher):
    item = _episode("Cold Turkey", summary="Thanksgiving dinner goes wrong.")
    for holiday in matcher.holidays:
        assert matcher.score(item, holiday) == 0


def test_strong_title_indicator_suppresses_other_holidays(matcher):
    item = _episode(
        "Halloween", summary="They carve a pumpkin, eat turkey and exchange gifts with Cupid."
    )
    assert matcher.score(item, Holiday.HALLOWEEN) > 0
    for holiday in CURATED_HOLIDAYS:
        if holiday != Holiday.HALLOWEEN:
            assert matcher.score(item, holiday) == 0, holiday


def test_treehouse_of_horror_is_halloween_only(matcher):
    item = _episode("Treehouse of Horror IX", series="The Simpsons")

    assert matcher.score(item, Holiday.HALLOWEEN) >= 25
    assert matcher.is_match(item, Holiday.HALLOWEEN)
    for holiday in CURATED_HOLIDAYS:
        if holiday != Holiday.HALLOWEEN:
            assert matcher.score(item, holiday) == 0, holiday
            assert not matcher.is_match(item, holiday)


def test_strong_indicator_in_summary_does_not_suppress(matcher):
    item = _episode("Turkey Trouble", summary="It is the day after Christmas.")
    assert matcher.score(item, Holiday.THANKSGIVING) == 10


def test_missing_text_scores_zero(matcher):
    item = _episode("", summary=None)
    for holiday in matcher.holidays:
        assert matcher.score(item, holiday) == 0


def test_required_title_override_with_year_tolerance(matcher):
    assert matcher.is_match(_movie("Die Hard", 1988), Holiday.CHRISTMAS)
    assert matcher.is_match(_movie("Die Hard", 1989), Holiday.CHRISTMAS)
    assert not matcher.is_match(_movie("Die Hard", 1991), Holiday.CHRISTMAS)


def test_required_title_needs_a_year(matcher):
    assert not matcher.is_required_title(_movie("Die Hard"), Holiday.CHRISTMAS)


def test_required_title_normalizes_article_and_punctuation(matcher):
    movie = _movie("Planes, Trains, and Automobiles!", 1987)
    assert matcher.is_required_title(movie, Holiday.THANKSGIVING)
    assert matcher.is_required_title(_movie("Christmas Carol", 2009), Holiday.CHRISTMAS)


def test_required_title_applies_to_movies_only(matcher):
    episode = Episode(
        external_id="ep",
        title="Die Hard",
        year=1988,
        series_title="Brooklyn Nine-Nine",
        season_number=1,
        episode_number=3,
    )
    assert not matcher.is_required_title(episode, Holiday.CHRISTMAS)


def test_required_title_overrides_suppression(matcher):
    """The Nightmare Before Christmas counts for Halloween despite its title."""
    movie = _movie("The Nightmare Before Christmas", 1993)
    assert matcher.score(movie, Holiday.HALLOWEEN) == 0
    assert matcher.is_match(movie, Holiday.HALLOWEEN)
    assert matcher.is_match(movie, Holiday.CHRISTMAS)


def test_additional_titles_add_patterns():
    matcher = HolidayMatcher(additional_titles={Holiday.CHRISTMAS: ["Elf on the Loose"]})
    baseline = HolidayMatcher()

    assert matcher.pattern_count(Holiday.CHRISTMAS) == baseline.pattern_count(Holiday.CHRISTMAS) + 1


def test_additional_titles_for_new_holiday():
    matcher = HolidayMatcher(additional_titles={Holiday.EASTER: ["Hop"]})
    item = _movie("Hop", 2011)

    assert Holiday.EASTER in matcher.holidays
    assert matcher.score(item, Holiday.EASTER) == 10
    assert matcher.is_match(item, Holiday.EASTER)


def test_generated_title_pattern_is_word_bounded():
    matcher = HolidayMatcher(additional_titles={Holiday.EASTER: ["Hop"]})
    assert matcher.score(_movie("Hopscotch"), Holiday.EASTER) == 0


def test_title_to_pattern_escapes_and_tolerates_whitespace():
    import re

    pattern = re.compile(title_to_pattern("Mr. Bean's  Holiday (2007)"), re.IGNORECASE)
    assert pattern.search("watching mr. bean's holiday (2007) tonight")
    assert not pattern.search("Mrx Bean's Holiday (2007)")


def test_normalize_title():
    assert normalize_title("The Grinch") == "grinch"
    assert normalize_title("It's  a Wonderful Life!") == "it s a wonderful life"
    assert normalize_title("A") == "a"


def test_find_matches_groups_by_kind_and_keeps_order(matcher):
    items = [
        _episode("Christmas Eve", external_id="e1"),
        _movie("Heat", 1995, external_id="m0"),
        _movie("Die Hard", 1988, external_id="m1"),
        _episode("Santa's Workshop", external_id="e2"),
    ]

    matches = matcher.find_matches(items)
    christmas = next(m for m in matches if m.holiday == Holiday.CHRISTMAS)

    assert [e.external_id for e in christmas.episodes] == ["e1", "e2"]
    assert [m.external_id for m in christmas.movies] == ["m1"]
    assert christmas.total == 3


def test_find_matches_with_threshold_and_holiday_filter(matcher):
    items = [
        _episode("Office Party", summary="A gift exchange.", external_id="e1"),
        _episode("Halloween Bash", external_id="e2"),
    ]

    assert matcher.find_matches_with_threshold(items, 100) == []

    low = matcher.find_matches_with_threshold(items, 1, [Holiday.CHRISTMAS])
    assert [m.holiday for m in low] == [Holiday.CHRISTMAS]
    assert [e.external_id for e in low[0].episodes] == ["e1"]


def test_match_summary_counts(matcher):
    items = [_episode("Christmas Eve", external_id="e1"), _movie("Hocus Pocus", 1993)]
    summary = matcher.match_summary(items)

    assert summary[Holiday.CHRISTMAS] == 1
    assert summary[Holiday.HALLOWEEN] == 1
    assert summary[Holiday.THANKSGIVING] == 0
