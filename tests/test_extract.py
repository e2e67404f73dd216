"""HTML text extraction tests."""

from noon.crawl.extract import html_to_unit


def test_collects_body_text_in_order():
    html = "<html><head><title>Skip me</title></head><body><p>Hello <b>level</b> world</p></body></html>"
    unit = html_to_unit(html)
    assert unit is not None
    assert [s.text for s in unit.segments] == ["Hello ", "level", " world"]
    assert unit.text == "Hello level world"
    assert [s.handle for s in unit.segments] == [0, 1, 2]


def test_skips_script_style_and_form_text():
    html = (
        "<body><script>var kayak = 1;</script><style>.a{}</style>"
        "<noscript>enable js</noscript><textarea>draft</textarea>"
        "<select><option>x</option></select><p>visible</p></body>"
    )
    unit = html_to_unit(html)
    assert unit is not None
    # option's parent is <option>, not <select>, so it survives
    assert unit.text == "xvisible"


def test_skips_comments_and_whitespace_nodes():
    html = "<body>\n  <!-- refer --><div>  </div><span>noon</span>\n</body>"
    unit = html_to_unit(html)
    assert unit is not None
    assert unit.text == "noon"


def test_nodes_are_joined_without_separator():
    unit = html_to_unit("<body><div>race</div><div>car</div></body>")
    assert unit is not None
    assert unit.text == "racecar"


def test_document_without_body_tag():
    unit = html_to_unit("<p>plain fragment</p>")
    assert unit is not None
    assert unit.text == "plain fragment"


def test_no_text_returns_none():
    assert html_to_unit("<html><body><script>x()</script></body></html>") is None
    assert html_to_unit("") is None
