"""HTML Sanitization — neutralizes executable markup before text is stored.

Invariants:
    - Script/style elements are dropped together with their content
    - Event-handler attributes and javascript: URLs never survive
    - Safe inline formatting (<p>, <strong>, <em>, ...) is kept
    - Sanitizing never makes the visible text longer than the input it came from

Design Decisions:
    - nh3 (ammonia bindings) over hand-written regexes: allow-list sanitizer, maintained upstream
    - Applied at the validation boundary, not at render time: stored records are already safe
"""

import html

import nh3

_ALLOWED_TAGS: set[str] = {
    "a", "b", "blockquote", "br", "code", "em", "i", "li",
    "ol", "p", "pre", "s", "strong", "u", "ul",
}
_ALLOWED_ATTRIBUTES: dict[str, set[str]] = {"a": {"href", "title"}}


def sanitize_html(value: str) -> str:
    return nh3.clean(
        value,
        tags=_ALLOWED_TAGS,
        attributes=_ALLOWED_ATTRIBUTES,
        url_schemes={"http", "https", "mailto"},
        link_rel="noopener noreferrer",
    )


def visible_length(value: str) -> int:
    """Characters a reader sees: markup stripped, entities decoded."""
    return len(html.unescape(nh3.clean(value, tags=set())))
