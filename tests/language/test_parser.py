"""Tests for the AIR document parser."""

from __future__ import annotations

from pathlib import Path

import pytest

from airc.language import AirParseError, Binary, BinaryOp, Element, Scoped, Text, Unary, UnaryOp, parse
from airc.language.blocks import (
    ApiBlock,
    ArrayType,
    AuthBlock,
    DbBlock,
    EnumType,
    HandlerBlock,
    NavBlock,
    ObjectType,
    OptionalType,
    PersistBlock,
    RefType,
    ScalarType,
    StateBlock,
    StyleBlock,
    UIBlock,
)


FIXTURES_DIR = Path(__file__).resolve().parent.parent / "fixtures"


def test_parse_app_name_and_blocks() -> None:
    """The app name and blocks should be kept in source order."""
    app = parse("@app:todo\n@state{count:int}\n@ui(\n  text>\"Hi\"\n)")

    assert app.name == "todo"
    assert [type(block) for block in app.blocks] == [StateBlock, UIBlock]


def test_parse_state_field_types() -> None:
    """State fields should map to typed records."""
    app = parse("@app:x\n@state{items:[{id:int,label:str}],filter:enum(all,done),note:?str,n:int(5)}")

    state = app.blocks[0]
    assert isinstance(state, StateBlock)
    items, status, note, count = state.fields
    assert isinstance(items.type, ArrayType)
    assert isinstance(items.type.of, ObjectType)
    assert [f.name for f in items.type.of.fields] == ["id", "label"]
    assert status.type == EnumType(("all", "done"))
    assert note.type == OptionalType(ScalarType("str"))
    assert count.type == ScalarType("int", 5)


def test_parse_style_hex_and_numbers() -> None:
    """Style values should keep colors as strings and numbers as numbers."""
    app = parse("@app:x\n@style(theme:dark,accent:#6366f1,radius:12,font:mono+sans)")

    style = app.blocks[0]
    assert isinstance(style, StyleBlock)
    assert style.properties == {"theme": "dark", "accent": "#6366f1", "radius": 12, "font": "mono+sans"}


def test_parse_api_routes() -> None:
    """Routes should keep method, path, params and raw handler."""
    app = parse("@app:x\n@api(\n  CRUD:/todos>~db.Todo\n  POST:/todos/:id/archive(?reason:str)>~db.Todo.update\n)")

    api = app.blocks[0]
    assert isinstance(api, ApiBlock)
    crud, archive = api.routes
    assert (crud.method, crud.path, crud.handler) == ("CRUD", "/todos", "~db.Todo")
    assert archive.path == "/todos/:id/archive"
    assert archive.handler == "~db.Todo.update"
    assert archive.params[0].name == "reason"
    assert isinstance(archive.params[0].type, OptionalType)


def test_parse_unknown_route_method() -> None:
    """Unknown HTTP methods should be rejected with their position."""
    with pytest.raises(AirParseError) as excinfo:
        parse("@app:x\n@api(\n  FETCH:/todos>~db.Todo.findMany\n)")

    assert excinfo.value.reason == "Unknown route method 'FETCH'"
    assert excinfo.value.line == 3


def test_parse_db_models_and_relations() -> None:
    """Models should carry modifiers, and relations their referential action."""
    source = (
        "@app:x\n"
        "@db{\n"
        "  User{id:int:primary:auto,email:str:required}\n"
        "  Post{id:int:primary:auto,author:#User,published:bool:default(false)}\n"
        "  @relation(Post.author<>User.id:cascade)\n"
        "  @index(User.email:unique)\n"
        "}"
    )
    db = parse(source).blocks[0]

    assert isinstance(db, DbBlock)
    user = db.model("User")
    post = db.model("Post")
    assert user is not None and post is not None
    key = user.field("id")
    assert key is not None and key.primary and key.auto
    email = user.field("email")
    assert email is not None and email.required
    author = post.field("author")
    assert author is not None and author.type == RefType("User")
    published = post.field("published")
    assert published is not None and published.default is False
    assert db.relations[0].source == "Post.author"
    assert db.relations[0].on_delete == "cascade"
    assert db.indexes[0].fields == ("User.email",)
    assert db.indexes[0].unique is True


def test_parse_handler_contracts() -> None:
    """Contracts should keep typed params and an optional target."""
    app = parse("@app:x\n@handler(\n  approveClaim(id:int,note:?str)>~db.Claim.update\n  notify(message:str)\n)")

    handler = app.blocks[0]
    assert isinstance(handler, HandlerBlock)
    approve, notify = handler.contracts
    assert approve.name == "approveClaim"
    assert [p.name for p in approve.params] == ["id", "note"]
    assert approve.target == "~db.Claim.update"
    assert notify.target is None


def test_parse_duplicate_handler_contract() -> None:
    """Two contracts with the same name should be a parse error."""
    source = (FIXTURES_DIR / "duplicate_contract.air").read_text(encoding="utf-8")

    with pytest.raises(AirParseError) as excinfo:
        parse(source)

    assert excinfo.value.reason == "Duplicate handler contract: 'approveClaim'"
    assert excinfo.value.line == 4


def test_parse_auth_nav_and_persist() -> None:
    """Auth, nav and persist blocks should parse their options."""
    source = (
        "@app:x\n"
        "@auth(required,role:enum(admin,member),redirect:/login)\n"
        "@nav(\n  />home\n  /dashboard>?user>dashboard:/login\n)\n"
        "@persist:cookie(token,7d,httpOnly)"
    )
    auth, nav, persist = parse(source).blocks

    assert auth == AuthBlock(True, ("admin", "member"), "/login")
    assert isinstance(nav, NavBlock)
    assert nav.routes[0].path == "/"
    assert nav.routes[0].target == "home"
    assert nav.routes[1].condition == "user"
    assert nav.routes[1].fallback == "/login"
    assert isinstance(persist, PersistBlock)
    assert persist.method == "cookie"
    assert persist.keys == ("token",)
    assert persist.options == {"7d": True, "httpOnly": True}


def test_parse_unknown_persist_method() -> None:
    """Only known storage methods should be accepted."""
    with pytest.raises(AirParseError) as excinfo:
        parse("@app:x\n@persist:indexedDb(todos)")

    assert excinfo.value.reason == "Unknown persist method 'indexedDb'"


def test_parse_ui_operator_precedence() -> None:
    """Compose binds loosest, then flow, pipe, bind and dot."""
    ui = parse("@app:x\n@ui(\n  list>#todos>*todo(text:#todo.text)+btn:!clear\n)").blocks[0]

    assert isinstance(ui, UIBlock)
    (root,) = ui.children
    assert isinstance(root, Binary) and root.op == BinaryOp.COMPOSE
    flow = root.left
    assert isinstance(flow, Binary) and flow.op == BinaryOp.FLOW
    assert isinstance(flow.right, Unary) and flow.right.op == UnaryOp.ITERATE
    item = flow.right.operand
    assert isinstance(item, Element) and item.name == "todo"
    (text,) = item.children
    assert isinstance(text, Binary) and text.op == BinaryOp.BIND
    assert isinstance(text.right, Binary) and text.right.op == BinaryOp.DOT
    button = root.right
    assert isinstance(button, Binary) and button.op == BinaryOp.BIND
    assert isinstance(button.right, Unary) and button.right.op == UnaryOp.MUTATE


def test_parse_ui_pages() -> None:
    """Scoped pages should become scoped nodes with their children."""
    ui = parse('@app:x\n@ui(\n  @page:home(h1>"Welcome")\n  @page:about(p>"About")\n)').blocks[0]

    assert isinstance(ui, UIBlock)
    home, about = ui.children
    assert isinstance(home, Scoped) and home.scope == "page" and home.name == "home"
    assert isinstance(about, Scoped) and about.name == "about"
    heading = home.children[0]
    assert isinstance(heading, Binary) and heading.right == Text("Welcome")


def test_parse_ui_trailing_children_attach_to_head() -> None:
    """Children after a bind chain should attach to the leading element."""
    ui = parse("@app:x\n@ui(\n  badge:\"New\"(icon:star)\n)").blocks[0]

    assert isinstance(ui, UIBlock)
    (badge,) = ui.children
    assert isinstance(badge, Binary) and badge.op == BinaryOp.BIND
    assert isinstance(badge.left, Element)
    assert badge.left.name == "badge"
    assert len(badge.left.children) == 1
    assert badge.right == Text("New")


def test_parse_missing_app_header() -> None:
    """Documents must start with @app."""
    with pytest.raises(AirParseError) as excinfo:
        parse("@state{count:int}")

    assert excinfo.value.line == 1
    assert "'@app'" in excinfo.value.reason


def test_parse_unknown_block() -> None:
    """Unknown block keywords should name the keyword."""
    with pytest.raises(AirParseError) as excinfo:
        parse("@app:x\n@bogus(a)")

    assert excinfo.value.reason == "Unknown block '@bogus'"
    assert (excinfo.value.line, excinfo.value.col) == (2, 1)


def test_parse_error_message_format() -> None:
    """Errors should show position, token, source line and a caret."""
    with pytest.raises(AirParseError) as excinfo:
        parse('@app:x\n@ui(\n  text:"oops\n)')

    message = str(excinfo.value)
    assert message.startswith("[AIR Parse Error] Line 3:8: Unterminated string literal")
    assert message.endswith('  text:"oops\n       ^')


def test_parse_todo_fixture() -> None:
    """The todo fixture should parse into state, style, persist and UI blocks."""
    app = parse((FIXTURES_DIR / "todo.air").read_text(encoding="utf-8"))

    assert app.name == "todo"
    assert [type(block).__name__ for block in app.blocks] == ["StateBlock", "StyleBlock", "PersistBlock", "UIBlock"]
