"""Tests for Express handler bodies chosen from ``~db`` targets."""

from __future__ import annotations

import pytest

from airc.language import AirContextError, parse
from airc.transpiler.context import extract_context
from airc.transpiler.relations import RelationGraph, resolve_relations
from airc.transpiler.routes import ApiRoute
from airc.transpiler.server import generate_server
from airc.transpiler.server.router import _HandlerWriter, find_user_model


def api_source(source: str) -> str:
    context = extract_context(parse(source))
    files = {f.path: f.content for f in generate_server(context, resolve_relations(context.db))}
    return files["server/api.ts"]


def user_model_name(db: str) -> str | None:
    model = find_user_model(extract_context(parse(f"@app:x\n@db{{\n{db}\n}}")))
    return model.name if model else None


def test_aggregate_counts_each_status_value() -> None:
    """An enum status field should get one count per value next to the total."""
    api = api_source(
        """\
@app:desk
@db{
  Ticket{id:int:primary:auto,title:str,status:enum(open,in_progress,closed)}
}
@api(
  GET:/stats>~db.Ticket.aggregate
)
"""
    )

    assert "const total = await prisma.ticket.count();" in api
    assert "const open = await prisma.ticket.count({ where: { status: 'open' } });" in api
    assert "const inProgress = await prisma.ticket.count({ where: { status: 'in_progress' } });" in api
    assert "res.json({ totalTickets: total, open, inProgress: inProgress, closed });" in api


def test_aggregate_without_status_returns_total() -> None:
    """Models without an enum status should only report the total."""
    api = api_source("@app:x\n@db{\n  Note{id:int:primary:auto,body:str}\n}\n@api(\n  GET:/stats>~db.Note.aggregate\n)")

    assert "const total = await prisma.note.count();" in api
    assert "res.json({ total });" in api


def test_nested_find_many_filters_by_parent() -> None:
    """``/projects/:id/tasks`` should list tasks of that project only."""
    api = api_source(
        """\
@app:pm
@db{
  Project{id:int:primary:auto,name:str}
  Task{id:int:primary:auto,title:str,project_id:int}
}
@api(
  GET:/projects/:id/tasks>~db.Task.findMany
)
"""
    )

    assert "const parentId = parseInt(req.params.id, 10);" in api
    assert "prisma.task.findMany({ where: { project_id: parentId }, orderBy: { id: 'desc' } })" in api
    assert "X-Total-Count" not in api


def test_find_user_model_prefers_user_with_password() -> None:
    """A User model with a password should beat other credential models."""
    db = "  Account{id:int,email:str,password:str}\n  User{id:int,email:str,password:str}"

    assert user_model_name(db) == "User"


def test_find_user_model_falls_back_to_credentials() -> None:
    """Without a password on User, any model with email and password wins."""
    db = "  User{id:int,name:str}\n  Account{id:int,email:str,password:str}"

    assert user_model_name(db) == "Account"


def test_find_user_model_named_user_then_email() -> None:
    """A plain User comes next, then the first model with an email."""
    assert user_model_name("  Member{id:int,email:str}\n  User{id:int,name:str}") == "User"
    assert user_model_name("  Post{id:int,title:str}\n  Member{id:int,email:str}") == "Member"
    assert user_model_name("  Post{id:int,title:str}") is None


def test_handler_without_model_raises() -> None:
    """Model-backed handler shapes should reject routes whose model is undeclared."""
    context = extract_context(parse("@app:x\n@db{\n  Note{id:int:primary:auto,body:str}\n}"))
    writer = _HandlerWriter(ApiRoute("GET", "/stats", "~db.Ghost.aggregate"), context, RelationGraph(), None)

    with pytest.raises(AirContextError, match="no database model"):
        writer.aggregate()


def test_nested_find_many_rejects_flat_path() -> None:
    """Only ``/parent/:id/child`` paths can be parent-filtered."""
    context = extract_context(parse("@app:x\n@db{\n  Note{id:int:primary:auto,body:str}\n}"))
    writer = _HandlerWriter(ApiRoute("GET", "/notes", "~db.Note.findMany"), context, RelationGraph(), None)

    with pytest.raises(AirContextError, match="not a nested collection path"):
        writer.nested_find_many()
