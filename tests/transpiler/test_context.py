"""Tests for semantic context extraction."""

from __future__ import annotations

import pytest

from airc.language import AirContextError, parse
from airc.transpiler.context import extract_context, is_auth_page


SAAS_SOURCE = """\
@app:saas
@auth(required)
@nav(
  />home
  /dashboard>?user>dashboard:/login
)
@api(
  POST:/auth/login>auth.login
)
@ui(
  @page:home(h1>"Welcome")
  @page:login(form(input:email:#email+input:password:#password+btn:submit:!login))
  @page:dashboard(h1>"Dashboard")
  @page:pricing(h1>"Plans")
)
"""


def test_extract_context_collects_state_and_style() -> None:
    """State fields and style properties should be merged into the context."""
    context = extract_context(parse("@app:x\n@state{count:int}\n@style(accent:#fff)\n@state{name:str}"))

    assert [f.name for f in context.state] == ["count", "name"]
    assert context.style == {"accent": "#fff"}
    assert context.has_backend is False
    assert context.persist_method == "localStorage"


def test_extract_context_pages_and_public_pages() -> None:
    """Unconditional nav targets and conventional names should be public."""
    context = extract_context(parse(SAAS_SOURCE))

    assert context.pages == ("home", "login", "dashboard", "pricing")
    assert context.public_pages == ("home", "pricing")
    assert context.auth is not None and context.auth.required is True


def test_extract_context_has_backend_from_routes() -> None:
    """Any API route should make the app full-stack."""
    context = extract_context(parse(SAAS_SOURCE))

    assert context.has_backend is True
    assert [route.function_name for route in context.expanded_routes] == ["authLogin"]


def test_extract_context_has_backend_from_contracts_only() -> None:
    """Handler contracts alone should also make the app full-stack."""
    context = extract_context(parse("@app:x\n@handler(\n  notify(message:str)\n)"))

    assert context.has_backend is True
    assert context.expanded_routes[0].path == "/handlers/notify"


def test_extract_context_rejects_reserved_contract_name() -> None:
    """Contracts must not shadow the standard mutation names."""
    with pytest.raises(AirContextError, match="reserved mutation name"):
        extract_context(parse("@app:x\n@handler(\n  toggle(id:int)\n)"))


def test_extract_context_merges_db_blocks() -> None:
    """Models from several @db blocks should be merged in order."""
    context = extract_context(
        parse("@app:x\n@db{\n  User{id:int:primary:auto}\n}\n@db{\n  Post{id:int:primary:auto}\n}")
    )

    assert [model.name for model in context.models] == ["User", "Post"]
    assert context.model("Post") is not None
    assert context.model("Missing") is None


def test_is_auth_page() -> None:
    """Auth page detection should ignore case."""
    assert is_auth_page("Login")
    assert is_auth_page("signup")
    assert not is_auth_page("dashboard")
