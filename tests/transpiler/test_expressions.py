"""Tests for UI expression helpers: collection names, empty labels and CTA targets."""

from __future__ import annotations

from airc.transpiler.context import Context
from airc.transpiler.ui.expressions import collection_root, derive_empty_label, match_cta_to_page


def test_collection_root_strips_spread_and_calls() -> None:
    """The root state name should survive spread, sort and member syntax."""
    assert collection_root("[...tasks].sort((a, b) => a.id - b.id)") == "tasks"
    assert collection_root("openTickets.filter(_item => _item.done)") == "openTickets"
    assert collection_root("orders[0]") == "orders"
    assert collection_root("...") == "items"


def test_derive_empty_label_splits_camel_case() -> None:
    """camelCase roots should read as lowercase words."""
    assert derive_empty_label("openTickets.filter(_item => _item.done)") == "No open tickets yet"
    assert derive_empty_label("[...tasks].sort((a, b) => b.id - a.id)") == "No tasks yet"


def test_derive_empty_label_fallback() -> None:
    """Missing or nameless expressions should fall back to items."""
    assert derive_empty_label(None) == "No items yet"
    assert derive_empty_label("") == "No items yet"
    assert derive_empty_label("[]") == "No items yet"


SITE = Context(
    "studio",
    pages=("home", "gallery", "booking", "contact", "team", "pricing"),
    public_pages=("home", "contact", "pricing"),
)


def test_match_cta_exact_page_name() -> None:
    """Text equal to a page name should pick that page."""
    assert match_cta_to_page("Gallery", SITE) == "gallery"


def test_match_cta_public_page_in_text() -> None:
    """A public page named inside the text should win over synonyms."""
    assert match_cta_to_page("See pricing for a session", SITE) == "pricing"


def test_match_cta_synonyms_prefer_public_pages() -> None:
    """Synonym groups should pick a public candidate before the first listed one."""
    assert match_cta_to_page("Book a session", SITE) == "contact"
    assert match_cta_to_page("View our work", SITE) == "gallery"


def test_match_cta_synonyms_fall_back_to_any_page() -> None:
    """Without a public candidate the first declared candidate should be used."""
    private = Context("studio", pages=("booking", "contact"), public_pages=())

    assert match_cta_to_page("Schedule now", private) == "booking"


def test_match_cta_any_page_in_text() -> None:
    """Non-public pages named in the text should match last."""
    assert match_cta_to_page("Meet the team", SITE) == "team"


def test_match_cta_no_match() -> None:
    """Unrelated text, or an app without pages, should give None."""
    assert match_cta_to_page("Sign up", SITE) is None
    assert match_cta_to_page("Gallery", Context("x")) is None
