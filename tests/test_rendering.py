from unittest.mock import patch

from docuchat.rendering import render_markdown


def test_renders_markdown():
    html = render_markdown("**Answer:** see the `summary`")

    assert "<strong>Answer:</strong>" in html
    assert "<code>summary</code>" in html


def test_script_tags_are_removed():
    html = render_markdown('Hello <script>alert("x")</script> <img src="a.png" onerror="alert(1)">')

    assert "<script" not in html
    assert "alert" not in html
    assert "Hello" in html


def test_links_keep_href_but_lose_javascript():
    html = render_markdown("[docs](https://example.com) [bad](javascript:alert(1))")

    assert 'href="https://example.com"' in html
    assert "javascript:" not in html


def test_render_failure_returns_none():
    with patch("docuchat.rendering.markdown.markdown", side_effect=RuntimeError("boom")):
        assert render_markdown("text") is None
