"""Show list filtering and ordering tests."""

from __future__ import annotations

from watchlist.filters import FilterSpec, apply_filters, derive_facets, strip_article
from watchlist.models import Show, WatchStatus


def _sample_shows() -> list[Show]:
    return [
        Show(
            show_id=1,
            title="The Wire",
            genres=["Drama", "Crime"],
            streaming_services=["Max"],
            watch_status=WatchStatus.WATCHED,
        ),
        Show(
            show_id=2,
            title="Breaking Bad",
            genres=["Drama"],
            streaming_services=["Netflix"],
            watch_status=WatchStatus.NOT_WATCHED,
        ),
        Show(
            show_id=3,
            title="Archer",
            genres=["Comedy", "Animation"],
            streaming_services=["Hulu", "Netflix"],
            watch_status=WatchStatus.WATCHING,
        ),
    ]


def _titles(shows: list[Show]) -> list[str]:
    return [show.title for show in shows]


def test_sorts_by_status_then_article_stripped_title() -> None:
    result = apply_filters(_sample_shows(), FilterSpec())

    assert _titles(result) == ["Breaking Bad", "Archer", "The Wire"]


def test_titles_sort_without_leading_article_within_status() -> None:
    shows = [
        Show(show_id=1, title="The Wire"),
        Show(show_id=2, title="an Idiot Abroad"),
        Show(show_id=3, title="Xena"),
        Show(show_id=4, title="A Touch of Cloth"),
        Show(show_id=5, title="Theodosia"),
    ]

    result = apply_filters(shows)

    assert _titles(result) == [
        "an Idiot Abroad",
        "Theodosia",
        "A Touch of Cloth",
        "The Wire",
        "Xena",
    ]


def test_filter_by_watch_status() -> None:
    result = apply_filters(_sample_shows(), FilterSpec(watch_status="WATCHED"))

    assert _titles(result) == ["The Wire"]


def test_filters_combine_across_axes() -> None:
    spec = FilterSpec(genre="Drama", streaming_service="Netflix")

    assert _titles(apply_filters(_sample_shows(), spec)) == ["Breaking Bad"]

    spec = FilterSpec(streaming_service="Netflix")

    assert _titles(apply_filters(_sample_shows(), spec)) == ["Breaking Bad", "Archer"]


def test_unknown_watch_status_imposes_no_constraint() -> None:
    spec = FilterSpec.from_query({"watchStatus": "SOMETIMES", "genre": "  "})

    assert spec.watch_status is None
    assert spec.genre is None
    assert len(apply_filters(_sample_shows(), spec)) == 3


def test_from_query_reads_camel_case_parameters() -> None:
    spec = FilterSpec.from_query(
        {"profileId": "4", "streamingService": "Hulu", "watchStatus": "watching"}
    )

    assert spec.streaming_service == "Hulu"
    assert spec.watch_status is WatchStatus.WATCHING
    assert _titles(apply_filters(_sample_shows(), spec)) == ["Archer"]


def test_equal_keys_keep_original_order() -> None:
    shows = [
        Show(show_id=10, title="Lost"),
        Show(show_id=11, title="lost"),
        Show(show_id=12, title="The Lost"),
    ]

    result = apply_filters(shows)

    assert [show.show_id for show in result] == [10, 11, 12]


def test_apply_filters_does_not_modify_input() -> None:
    shows = _sample_shows()
    snapshot = list(shows)

    first = apply_filters(shows, FilterSpec(genre="Drama"))
    second = apply_filters(shows, FilterSpec(genre="Drama"))

    assert shows == snapshot
    assert first == second


def test_derive_facets_unions_labels() -> None:
    shows = [
        Show(show_id=1, title="One", genres=["Drama"]),
        Show(show_id=2, title="Two", genres=["Drama", "Comedy"]),
    ]

    genres, services = derive_facets(shows)

    assert genres == {"Drama", "Comedy"}
    assert derive_facets(list(reversed(shows)))[0] == genres
    assert services == frozenset()


def test_strip_article() -> None:
    assert strip_article("The Wire") == "Wire"
    assert strip_article("Theodosia") == "Theodosia"
    assert strip_article("  A Show  ") == "Show"
