"""HTML Sanitization — executable markup is removed, safe formatting kept."""

from memo_api.core.sanitize import sanitize_html, visible_length


def test_script_removed_text_kept():
    result = sanitize_html("<script>alert('xss')</script>Hello World")
    assert "<script>" not in result
    assert "alert" not in result
    assert "Hello World" in result


def test_event_handler_removed():
    result = sanitize_html("<img src=x onerror=alert('xss')>")
    assert "onerror" not in result
    assert "alert" not in result


def test_javascript_url_removed():
    result = sanitize_html('<a href="javascript:alert(1)">click</a>')
    assert "javascript:" not in result
    assert "click" in result


def test_safe_tags_kept():
    result = sanitize_html("<p>Hello <strong>World</strong></p>")
    assert result == "<p>Hello <strong>World</strong></p>"


def test_plain_text_unchanged():
    assert sanitize_html("Call the landlord") == "Call the landlord"


def test_ampersand_escaped_in_stored_markup():
    assert sanitize_html("a & b") == "a &amp; b"


def test_visible_length_counts_decoded_text():
    assert visible_length("a &amp; b") == 5
    assert visible_length("<p>Hello <strong>World</strong></p>") == 11


def test_sanitized_text_never_longer_to_a_reader():
    raw = "a & b < c " * 50
    assert len(sanitize_html(raw)) > len(raw)
    assert visible_length(sanitize_html(raw)) == len(raw)
