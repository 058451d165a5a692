"""Tests for the React client generator."""

from __future__ import annotations

from pathlib import Path

from airc.language import parse
from airc.transpiler.context import extract_context
from airc.transpiler.ui import generate_ui
from airc.transpiler.ui.jsx import JsxEmitter
from airc.transpiler.ui.scope import Scope
from airc.transpiler.ui.styles import font_family, hex_to_rgb


FIXTURES_DIR = Path(__file__).resolve().parent.parent / "fixtures"

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


def ui_files(source: str) -> dict[str, str]:
    output = generate_ui(extract_context(parse(source)))
    return {f.path: f.content for f in output.files}


def fixture_files(name: str) -> dict[str, str]:
    return ui_files((FIXTURES_DIR / name).read_text(encoding="utf-8"))


def test_frontend_only_file_set() -> None:
    """Apps without a backend should get App.jsx and index.css under src/."""
    files = fixture_files("todo.air")

    assert set(files) == {"src/App.jsx", "src/index.css"}
    assert "import * as api" not in files["src/App.jsx"]


def test_local_state_mutations() -> None:
    """Without a backend add and del should update the local array."""
    app = fixture_files("todo.air")["src/App.jsx"]

    assert "const [todos, setTodos] = useState([]);" in app
    assert "const add = (data) => {" in app
    assert "setTodos(prev => [...prev, { ...item, id: Date.now() }]);" in app
    assert "const del = (id) => {" in app
    assert "setTodos(prev => prev.filter(item => item.id !== id));" in app


def test_list_iteration_and_empty_state() -> None:
    """Lists should render an empty state and map over the collection."""
    app = fixture_files("todo.air")["src/App.jsx"]

    assert "{todos.length === 0 ? (" in app
    assert '<div className="empty-state">No todos yet</div>' in app
    assert ") : todos.map((todo) => (" in app
    assert "onClick={() => del(todo.id)}" in app


def test_checkbox_toggles_item_field() -> None:
    """A checkbox bound to an item field should flip it in the array."""
    app = fixture_files("todo.air")["src/App.jsx"]

    assert (
        "onChange={() => setTodos(prev => prev.map(_i => _i.id === todo.id ? { ..._i, done: !_i.done } : _i))}"
        in app
    )


def test_persist_effects() -> None:
    """@persist keys should be loaded on mount and saved on change."""
    app = fixture_files("todo.air")["src/App.jsx"]

    assert "const raw = localStorage.getItem('todo-todos');" in app
    assert "localStorage.setItem('todo-todos', JSON.stringify(todos));" in app
    assert "}, [todos]);" in app


def test_index_css_variables() -> None:
    """The accent colour should be exposed as hex and as an rgb triple."""
    css = fixture_files("todo.air")["src/index.css"]

    assert "--accent: #6366f1;" in css
    assert "--accent-rgb: 99, 102, 241;" in css
    assert "--radius: 12px;" in css
    assert "--bg: #030712;" in css


def test_fullstack_file_set() -> None:
    """Apps with a backend should get client/src files and an api client."""
    files = fixture_files("fullstack.air")

    assert set(files) == {"client/src/App.jsx", "client/src/index.css", "client/src/api.js"}


def test_fullstack_light_theme() -> None:
    """A light theme should switch the palette."""
    css = fixture_files("fullstack.air")["client/src/index.css"]

    assert "--accent-rgb: 255, 255, 255;" in css
    assert "--bg: #ffffff;" in css


def test_api_client_functions() -> None:
    """Every expanded route should get one fetch wrapper."""
    api = fixture_files("fullstack.air")["client/src/api.js"]

    assert "export async function getTodos({ page, limit } = {}) {" in api
    assert "export async function createTodo(data) {" in api
    assert "export async function updateTodo(id, data) {" in api
    assert "export async function deleteTodo(id) {" in api
    assert "export async function checkout(data) {" in api
    assert "export async function notify(data) {" in api
    assert "body: JSON.stringify(data ?? {})," in api
    assert "export function setToken(token) {" in api


def test_wired_mutations_call_api_and_refetch() -> None:
    """With a backend, mutations should call the client and refetch the list."""
    app = fixture_files("fullstack.air")["client/src/App.jsx"]

    assert "import * as api from './api.js';" in app
    assert "await api.createTodo(data);" in app
    assert "await api.deleteTodo(id);" in app
    assert "const updated = await api.getTodos();" in app
    assert "setTodos(updated.data ?? updated);" in app
    assert "const result = await api.checkout(data);" in app


def test_unresolved_mutations_are_reported() -> None:
    """Mutations without a matching route should be listed."""
    output = generate_ui(
        extract_context(parse("@app:shop\n@api(\n  GET:/items>~db.Item.findMany\n)\n@ui(\n  btn:!frobnicate\n)"))
    )

    assert output.unresolved_mutations == ["frobnicate"]


def test_auth_gating() -> None:
    """Required auth should gate protected pages and start on a public one."""
    app = ui_files(SAAS_SOURCE)["client/src/App.jsx"]

    assert "const [user, setUser] = useState(null);" in app
    assert "const [currentPage, setCurrentPage] = useState('home');" in app
    assert "const isAuthed = !!user;" in app
    assert "isAuthed && currentPage === 'dashboard'" in app


def test_hex_to_rgb() -> None:
    """Short and long hex forms should both convert."""
    assert hex_to_rgb("#6366f1") == "99, 102, 241"
    assert hex_to_rgb("#fff") == "255, 255, 255"
    assert hex_to_rgb("#12345678") == "18, 52, 86"


def test_font_family() -> None:
    """Named stacks should expand and unknown names pass through."""
    assert font_family(None) == "system-ui, -apple-system, sans-serif"
    assert font_family("serif+Lato") == "Georgia, serif, Lato"


SORTED_TASKS_STATE = "@state{tasks:[{id:int,text:str,done:bool}],sort:str}\n"


def test_sorted_list_bind_form_keeps_collection_name() -> None:
    """``list:#tasks|sort>*task`` should label and update the ``tasks`` state."""
    app = ui_files(
        "@app:todo\n" + SORTED_TASKS_STATE + "@ui(list:#tasks|sort>*task(check:#task.done+text:#task.text))"
    )["src/App.jsx"]

    assert "[...tasks].sort(" in app
    assert "No tasks yet" in app
    assert "setTasks(prev => prev.map(" in app
    assert "No tasks] yet" not in app
    assert "setTasks](" not in app


def test_sorted_list_flow_form_keeps_collection_name() -> None:
    """``list>#tasks|sort>*task`` should label and update the ``tasks`` state."""
    app = ui_files(
        "@app:todo\n" + SORTED_TASKS_STATE + "@ui(list>#tasks|sort>*task(check:#task.done+text:#task.text))"
    )["src/App.jsx"]

    assert "[...tasks].sort(" in app
    assert "No tasks yet" in app
    assert "setTasks(prev => prev.map(" in app
    assert "No tasks] yet" not in app
    assert "setTasks](" not in app


def emit_first(source: str) -> str:
    context = extract_context(parse(source))
    return JsxEmitter(context).emit(context.ui_nodes[0], Scope(), 0)


def test_compose_inline_pair_is_a_flex_row() -> None:
    """Two inline siblings should share one flex row."""
    jsx = emit_first('@app:x\n@ui(\n  "Total"+!refresh\n)')

    assert jsx.startswith('<div className="flex items-center gap-2">')
    assert jsx.endswith("</div>")
    assert ">Refresh</button>" in jsx


def test_compose_block_pair_is_not_wrapped() -> None:
    """Block siblings should be emitted one after the other."""
    jsx = emit_first("@app:x\n@ui(\n  card+card\n)")

    assert "flex items-center gap-2" not in jsx
