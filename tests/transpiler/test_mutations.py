"""Tests for mutation collection, route matching and bind chains."""

from __future__ import annotations

from airc.language import Binary, BinaryOp, Element, Text, Unary, UnaryOp, parse
from airc.language.blocks import UIBlock
from airc.transpiler.bind import resolve_bind_chain
from airc.transpiler.context import extract_context
from airc.transpiler.mutations import collect_mutations, extract_model_hint, find_matching_route


PROJECTS_SOURCE = """\
@app:pm
@state{tasks:[{id:int,title:str}],projects:[{id:int,name:str}]}
@db{
  Project{id:int:primary:auto,name:str:required}
  Task{id:int:primary:auto,title:str:required,project_id:int}
}
@api(
  CRUD:/projects>~db.Project
  CRUD:/tasks>~db.Task
  POST:/tasks/:id/approve>~db.Task.update
)
@handler(
  archiveAll(ids:[int])>~db.Project.update
)
"""


def ui_nodes(source: str) -> tuple:
    ui = next(block for block in parse(source).blocks if isinstance(block, UIBlock))
    return ui.children


def test_collect_mutations_keeps_first_occurrence() -> None:
    """Repeated mutation names should keep the arguments of the first use."""
    nodes = ui_nodes("@app:x\n@ui(\n  btn:!save(#a)\n  btn:!clear\n  btn:!save(#b)\n)")

    mutations = collect_mutations(nodes)

    assert list(mutations) == ["save", "clear"]
    (arg,) = mutations["save"]
    assert arg == Unary(UnaryOp.REF, Element("a"))


def test_extract_model_hint_from_dotted_ref() -> None:
    """A #model.field argument should hint the plural resource."""
    arg = Binary(BinaryOp.DOT, Unary(UnaryOp.REF, Element("task")), Element("id"))

    assert extract_model_hint([arg]) == "tasks"
    assert extract_model_hint([Unary(UnaryOp.REF, Element("id"))]) is None
    assert extract_model_hint([]) is None


def test_find_matching_route_delete_uses_model_hint() -> None:
    """del(#task.id) should pick the task delete route over the project one."""
    context = extract_context(parse(PROJECTS_SOURCE))
    args = (Binary(BinaryOp.DOT, Unary(UnaryOp.REF, Element("task")), Element("id")),)

    match = find_matching_route("del", context.expanded_routes, context, args)

    assert match is not None
    assert match.fn_name == "deleteTask"
    assert match.refetch_fn_name == "getTasks"
    assert match.refetch_setter == "setTasks"


def test_find_matching_route_add_takes_first_create() -> None:
    """add should bind to the first create route."""
    context = extract_context(parse(PROJECTS_SOURCE))

    match = find_matching_route("add", context.expanded_routes, context)

    assert match is not None
    assert match.fn_name == "createProject"
    assert match.method == "POST"


def test_find_matching_route_contract_by_name() -> None:
    """A mutation named like a contract should call the contract route."""
    context = extract_context(parse(PROJECTS_SOURCE))

    match = find_matching_route("archiveAll", context.expanded_routes, context)

    assert match is not None
    assert match.route.path == "/handlers/archive-all"
    assert match.fn_name == "archiveAll"


def test_find_matching_route_generic_kebab_suffix() -> None:
    """Unknown names should match a POST route ending in their kebab form."""
    context = extract_context(parse(PROJECTS_SOURCE))

    match = find_matching_route("approve", context.expanded_routes, context)

    assert match is not None
    assert match.route.path == "/tasks/:id/approve"


def test_find_matching_route_verb_model() -> None:
    """verb+Model names should find the matching model route."""
    context = extract_context(parse(PROJECTS_SOURCE))

    match = find_matching_route("removeTask", context.expanded_routes, context)

    assert match is not None
    assert match.fn_name == "deleteTask"


def test_find_matching_route_no_match() -> None:
    """Names without any matching route should return None."""
    context = extract_context(parse(PROJECTS_SOURCE))

    assert find_matching_route("frobnicate", context.expanded_routes, context) is None


def test_resolve_bind_chain_classifies_parts() -> None:
    """Modifiers, label and action should be separated."""
    (node,) = ui_nodes('@app:x\n@ui(\n  btn:primary:"Save":!save\n)')

    resolved = resolve_bind_chain(node)

    assert resolved is not None
    assert resolved.element == "btn"
    assert resolved.modifiers == ("primary",)
    assert resolved.label == "Save"
    assert resolved.action == Unary(UnaryOp.MUTATE, Element("save"))
    assert resolved.binding is None


def test_resolve_bind_chain_binding_and_numeric_modifier() -> None:
    """Refs should become the binding and numbers modifiers."""
    (node,) = ui_nodes("@app:x\n@ui(\n  grid:3:#items\n)")

    resolved = resolve_bind_chain(node)

    assert resolved is not None
    assert resolved.modifiers == ("3",)
    assert resolved.binding == Unary(UnaryOp.REF, Element("items"))


def test_resolve_bind_chain_rejects_other_nodes() -> None:
    """Only bind chains headed by an element should resolve."""
    assert resolve_bind_chain(Element("btn")) is None
    assert resolve_bind_chain(Binary(BinaryOp.BIND, Text("x"), Element("y"))) is None
