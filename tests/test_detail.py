from episodic.detail import GENRE_CHAIN, STATUS_CHAIN, find_episode_refs, parse_detail
from episodic.extractors import Page
from episodic.models import ItemRef, Status, SubItemRef

URL = "https://site.test/anime/one-piece/"
REF = ItemRef(url=URL, title="One Piece (listing)", image="https://site.test/img/listing.jpg")


def page(html):
    return Page.from_html(html, URL)


def test_og_image_only_page():
    html = """
    <html><head><meta property="og:image" content="https://cdn.test/op.jpg"></head>
    <body><h1 class="entry-title">One Piece</h1></body></html>
    """
    detail = parse_detail(html, REF)
    assert detail.title == "One Piece"
    assert detail.image == "https://cdn.test/op.jpg"
    assert detail.genre == []
    assert detail.status is Status.UNKNOWN
    assert detail.synopsis is None
    assert detail.subitem_refs == []


def test_image_falls_back_to_thumbnail_then_reference():
    html = '<div class="thumb"><img src="data:image/gif;base64,AAAA" data-src="/img/big.jpg"></div>'
    assert parse_detail(html, REF).image == "https://site.test/img/big.jpg"
    assert parse_detail("<p>no images</p>", REF).image == REF.image


def test_title_falls_back_to_reference():
    assert parse_detail("<p>bare</p>", REF).title == "One Piece (listing)"


def test_genre_container_beats_label():
    html = """
    <div class="genre-info">
      <a href="/genre/action/">Action</a><a href="/genre/adventure/">Adventure</a><a href="/genre/action/">Action</a>
    </div>
    <p>Genre: Drama, Romance</p>
    """
    assert GENRE_CHAIN.resolve_with_source(page(html), REF) == ("genre container", ["Action", "Adventure"])


def test_genre_label_split_on_commas():
    html = """
    <div class="spe"><span><b>Genre:</b> <a href="/g/drama/">Drama</a>, <a href="/g/romance/">Romance</a></span></div>
    """
    assert GENRE_CHAIN.resolve_with_source(page(html), REF) == ("Genre: label", ["Drama", "Romance"])


def test_status_from_label_and_keywords():
    assert parse_detail('<div class="spe"><span><b>Status:</b> Ongoing</span></div>', REF).status is Status.ONGOING
    assert parse_detail("<ul><li>Status: Selesai</li></ul>", REF).status is Status.COMPLETED
    assert parse_detail("<small>Completed</small>", REF).status is Status.COMPLETED
    assert parse_detail("<p>Nothing here</p>", REF).status is Status.UNKNOWN


def test_status_label_beats_keyword_element():
    html = "<ul><li>Status: Ongoing</li></ul><small>Completed</small>"
    assert STATUS_CHAIN.resolve_with_source(page(html), REF) == ("Status: label", Status.ONGOING)


def test_synopsis_chain_order():
    container = '<meta name="description" content="Meta text"><div class="sinopsis"><p>Luffy sets sail.</p></div>'
    meta = '<meta name="description" content="Meta text"><div class="entry-content"><p>First para.</p></div>'
    paragraph = '<div class="entry-content"><p>First para.</p><p>Second.</p></div>'
    assert parse_detail(container, REF).synopsis == "Luffy sets sail."
    assert parse_detail(meta, REF).synopsis == "Meta text"
    assert parse_detail(paragraph, REF).synopsis == "First para."


def test_episode_links_in_first_seen_order():
    html = """
    <a href="/anime/one-piece/">One Piece</a>
    <a href="/one-piece-episode-2/">Episode 2</a>
    <a href="/one-piece-episode-1/">Episode 1</a>
    <a href="/one-piece-episode-2/#comments">Episode 2</a>
    <a href="/genre/action/">Action</a>
    """
    assert find_episode_refs(page(html), URL) == [
        SubItemRef(url="https://site.test/one-piece-episode-2/", title="Episode 2"),
        SubItemRef(url="https://site.test/one-piece-episode-1/", title="Episode 1"),
    ]


def test_loose_episode_pass_when_no_episode_keywords():
    html = """
    <a href="/genre/action/">Action</a>
    <a href="/watch/one-piece/1/">1</a>
    <a href="/watch/one-piece/2/">2</a>
    """
    refs = find_episode_refs(page(html), URL)
    assert [r.url for r in refs] == ["https://site.test/watch/one-piece/1/", "https://site.test/watch/one-piece/2/"]


def test_unfetched_page_keeps_reference_fields():
    detail = parse_detail(None, REF)
    record = detail.to_record()
    assert record.title == REF.title
    assert record.image == REF.image
    assert record.genre == []
    assert record.status is Status.UNKNOWN
    assert record.synopsis is None
    assert record.subitems == []


def test_listing_status_is_last_resort():
    ref = ItemRef(url=URL, title="One Piece", status=Status.ONGOING)
    assert STATUS_CHAIN.resolve_with_source(page("<p>nothing</p>"), ref) == ("listing card status", Status.ONGOING)
    assert parse_detail("<p>Status: Tamat</p>", ref).status is Status.COMPLETED
    assert parse_detail(None, ref).status is Status.ONGOING


def test_malformed_links_on_series_page_are_skipped():
    html = """
    <meta property="og:image" content="http://[broken.jpg">
    <a href="http://[x/episode-1">Episode 1</a>
    <a href="/one-piece-episode-2/">Episode 2</a>
    """
    detail = parse_detail(html, REF)
    assert detail.image == REF.image
    assert [r.url for r in detail.subitem_refs] == ["https://site.test/one-piece-episode-2/"]
