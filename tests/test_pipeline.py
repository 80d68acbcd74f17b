import threading

import pytest

from episodic.config import CrawlConfig
from episodic.models import Status
from episodic.pipeline import Crawler
from episodic.storage import load_collection

ORIGIN = "https://site.test"
L1 = ORIGIN + "/daftar-anime/"
L2 = ORIGIN + "/daftar-anime/?page=2"
ONE_PIECE = ORIGIN + "/anime/one-piece/"
NARUTO = ORIGIN + "/anime/naruto/"
BLEACH = ORIGIN + "/anime/bleach/"


def card(slug, title, year):
    return (
        f'<article class="animepost"><a href="/anime/{slug}/" title="{title}"><img src="/img/{slug}.jpg"></a>'
        f'<div class="epztipe">TV {year}</div></article>'
    )


def episode(n):
    return (
        f'<h1 class="entry-title">One Piece Episode {n}</h1><span class="date">2024-03-0{n}</span>'
        f'<a href="https://pixeldrain.com/u/ep{n}">Pixeldrain</a>'
    )


@pytest.fixture
def anime_site(site):
    site.pages[L1] = (
        '<div class="listupd">' + card("one-piece", "One Piece", 2021) + card("naruto", "Naruto", 2019) + "</div>"
        '<div class="pagination"><a href="?page=2">2</a></div>'
    )
    site.pages[L2] = (
        '<div class="listupd">' + card("naruto", "Naruto", 2019) + card("bleach", "Bleach", 2022) + "</div>"
        '<div class="pagination"><a href="?page=1">1</a><a href="?page=2">2</a></div>'
    )
    site.pages[ONE_PIECE] = """
        <h1 class="entry-title">One Piece</h1>
        <div class="genre-info"><a href="/genre/action/">Action</a><a href="/genre/adventure/">Adventure</a></div>
        <div class="spe"><span><b>Status:</b> Ongoing</span></div>
        <div class="sinopsis"><p>Luffy sets sail.</p></div>
        <ul class="eplister">
          <li><a href="/one-piece-episode-1/">Episode 1</a></li>
          <li><a href="/one-piece-episode-2/">Episode 2</a></li>
        </ul>
    """
    site.pages[ORIGIN + "/one-piece-episode-1/"] = episode(1)
    site.pages[ORIGIN + "/one-piece-episode-2/"] = episode(2)
    site.pages[NARUTO] = '<h1 class="entry-title">Naruto</h1><p>Status: Completed</p>'
    site.fail.add(BLEACH)
    return site


def config(tmp_path, **overrides):
    return CrawlConfig(base_url=ORIGIN, request_delay_ms=0, output_path=tmp_path / "out.json", **overrides)


def test_full_crawl(anime_site, tmp_path):
    with Crawler(config(tmp_path), fetcher=anime_site.fetcher()) as crawler:
        result = crawler.run()

    assert result.listing_pages == [L1, L2]
    assert [item.url for item in result.items] == [ONE_PIECE, NARUTO, BLEACH]

    one_piece = result.items[0]
    assert one_piece.title == "One Piece"
    assert one_piece.image == ORIGIN + "/img/one-piece.jpg"
    assert one_piece.genre == ["Action", "Adventure"]
    assert one_piece.status is Status.ONGOING
    assert one_piece.synopsis == "Luffy sets sail."
    assert [s.title for s in one_piece.subitems] == ["One Piece Episode 1", "One Piece Episode 2"]
    assert one_piece.subitems[0].release_date == "2024-03-01"
    assert one_piece.subitems[0].downloads == ["https://pixeldrain.com/u/ep1"]

    assert result.items[1].status is Status.COMPLETED
    assert result.items[1].subitems == []

    assert result.saved
    assert load_collection(tmp_path / "out.json") == result.items


def test_each_page_fetched_once_except_retries(anime_site, tmp_path):
    with Crawler(config(tmp_path), fetcher=anime_site.fetcher()) as crawler:
        crawler.run()
    calls = anime_site.calls
    assert calls.count(L1) == 1
    assert calls.count(L2) == 1
    assert calls.count(NARUTO) == 1
    assert calls.count(BLEACH) == 3


def test_unreachable_series_keeps_listing_fields(anime_site, tmp_path):
    with Crawler(config(tmp_path), fetcher=anime_site.fetcher()) as crawler:
        result = crawler.run()
    bleach = result.items[-1]
    assert bleach.title == "Bleach"
    assert bleach.image == ORIGIN + "/img/bleach.jpg"
    assert bleach.genre == []
    assert bleach.status is Status.UNKNOWN
    assert bleach.synopsis is None
    assert bleach.subitems == []
    assert result.failures == [BLEACH]


def test_write_failure_still_returns_items(anime_site, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    cfg = config(tmp_path).with_overrides(output_path=blocker / "out.json")
    with Crawler(cfg, fetcher=anime_site.fetcher()) as crawler:
        result = crawler.run()
    assert not result.saved
    assert result.error
    assert len(result.items) == 3


def test_listing_only_mode(anime_site, tmp_path):
    cfg = CrawlConfig.listing_only(base_url=ORIGIN, request_delay_ms=0, output_path=tmp_path / "out.json")
    with Crawler(cfg, fetcher=anime_site.fetcher()) as crawler:
        result = crawler.run()
    # 2019 title filtered out; no series or episode page is fetched
    assert [item.title for item in result.items] == ["One Piece", "Bleach"]
    assert anime_site.calls == [L1, L2]
    assert all(item.genre == [] and item.status is Status.UNKNOWN for item in result.items)
    assert result.saved


def test_max_items_stops_listing_early(anime_site, tmp_path):
    with Crawler(config(tmp_path, max_items=1), fetcher=anime_site.fetcher()) as crawler:
        result = crawler.run()
    assert [item.url for item in result.items] == [ONE_PIECE]
    assert L2 not in anime_site.calls


@pytest.mark.parametrize("save_partial", [True, False])
def test_cancel_stops_at_next_fetch(anime_site, tmp_path, save_partial):
    cancel = threading.Event()
    anime_site.on_request = lambda url: cancel.set() if url == NARUTO else None
    cfg = config(tmp_path, save_partial=save_partial)
    with Crawler(cfg, fetcher=anime_site.fetcher(cancel=cancel)) as crawler:
        result = crawler.run()
    assert result.cancelled
    assert [item.url for item in result.items] == [ONE_PIECE, NARUTO]
    assert BLEACH not in anime_site.calls
    out = tmp_path / "out.json"
    if save_partial:
        assert result.saved
        assert [item.url for item in load_collection(out)] == [ONE_PIECE, NARUTO]
    else:
        assert not result.saved
        assert not out.exists()


def test_malformed_hrefs_do_not_abort_the_run(anime_site, tmp_path):
    anime_site.pages[L1] += '<a href="http://[broken-link">broken</a>'
    anime_site.pages[NARUTO] += '<a href="http://[x/episode-1">Episode 1</a>'
    with Crawler(config(tmp_path), fetcher=anime_site.fetcher()) as crawler:
        result = crawler.run()
    assert [item.url for item in result.items] == [ONE_PIECE, NARUTO, BLEACH]
    assert result.items[1].subitems == []
    assert result.saved


def test_listing_card_status_survives_listing_only_and_failed_series(anime_site, tmp_path):
    anime_site.pages[L2] = anime_site.pages[L2].replace(
        'TV 2022</div></article>', 'TV 2022</div><div class="status">Ongoing</div></article>'
    )
    cfg = CrawlConfig.listing_only(base_url=ORIGIN, request_delay_ms=0, output_path=tmp_path / "out.json")
    with Crawler(cfg, fetcher=anime_site.fetcher()) as crawler:
        listing = crawler.run()
    assert listing.items[-1].status is Status.ONGOING

    # full crawl: bleach's series page times out, the card status is kept
    with Crawler(config(tmp_path), fetcher=anime_site.fetcher()) as crawler:
        full = crawler.run()
    assert full.items[-1].url == BLEACH
    assert full.items[-1].status is Status.ONGOING


def test_cancel_with_own_fetcher_is_rejected(anime_site, tmp_path):
    with pytest.raises(ValueError):
        Crawler(config(tmp_path), fetcher=anime_site.fetcher(), cancel=threading.Event())
