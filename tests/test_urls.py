from episodic.urls import absolutize, is_absolute, page_key, page_number, site_origin, url_key, with_page_number


def test_absolutize_resolves_and_rejects():
    base = "https://site.test/anime/one-piece/"
    assert absolutize("/img/op.jpg", base) == "https://site.test/img/op.jpg"
    assert absolutize("ep-1/#comments", base) == "https://site.test/anime/one-piece/ep-1/"
    assert absolutize("#top", base) is None
    assert absolutize("javascript:void(0)", base) is None
    assert absolutize("mailto:a@b.c", base) is None
    assert absolutize("", base) is None
    assert absolutize(None, base) is None


def test_url_key_ignores_trailing_slash_and_host_case():
    assert url_key("https://Site.test/anime/one-piece") == url_key("https://site.test/anime/one-piece/")
    assert url_key("https://site.test/a#x") == url_key("https://site.test/a")


def test_page_one_spellings_share_a_key():
    bare = page_key("https://site.test/daftar-anime/")
    assert page_key("https://site.test/daftar-anime/?page=1") == bare
    assert page_key("https://site.test/daftar-anime/page/1/") == bare
    assert page_key("https://site.test/daftar-anime/?page=2") != bare


def test_page_number_and_substitution():
    assert page_number("https://site.test/list/page/7/") == 7
    assert page_number("https://site.test/list/?order=new&page=3") == 3
    assert page_number("https://site.test/list/") is None
    assert with_page_number("https://site.test/list/page/7/", 2) == "https://site.test/list/page/2/"
    assert with_page_number("https://site.test/list/?order=new&page=3", 5) == "https://site.test/list/?order=new&page=5"


def test_site_origin():
    assert site_origin("https://site.test/daftar-anime/?page=2") == "https://site.test"


def test_malformed_hrefs_are_rejected():
    assert absolutize("http://[broken-link", "https://site.test/") is None
    assert absolutize("/ok/", "https://site.test/") == "https://site.test/ok/"
    assert not is_absolute("http://[broken")
