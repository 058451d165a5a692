"""AIR element names to JSX tags and utility classes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass(frozen=True, slots=True)
class ElementMapping:
    tag: str
    class_name: str = ""
    self_closing: bool = False
    input_type: str | None = None


@dataclass(frozen=True, slots=True)
class _Entry:
    base: ElementMapping
    modifiers: dict[str, dict[str, object]] = field(default_factory=dict)


RADIUS = "rounded-[var(--radius)]"
SURFACE = f"{RADIUS} border border-[var(--border)] bg-[var(--surface)]"
BUTTON = f"px-5 py-2.5 {RADIUS} cursor-pointer transition-colors"
ACCENT_BUTTON = f"bg-[var(--accent)] text-white font-medium hover:brightness-110 {BUTTON}"
OUTLINE_BUTTON = f"border border-[var(--accent)] text-[var(--accent)] font-medium hover:opacity-90 {BUTTON}"
GHOST_BUTTON = f"bg-transparent hover:bg-[var(--hover)] px-4 py-2 {RADIUS} cursor-pointer transition-colors"
INPUT = f"{RADIUS} px-3.5 py-2.5"
CODE_BLOCK = f"font-mono text-sm bg-[var(--surface)] border border-[var(--border)] {RADIUS} p-5 overflow-x-auto whitespace-pre"
ALERT = "border-l-4 p-4 rounded"


def _entry(tag: str, class_name: str = "", *, self_closing: bool = False, input_type: str | None = None, **modifiers):
    return _Entry(ElementMapping(tag, class_name, self_closing, input_type), modifiers)


ELEMENT_MAP: dict[str, _Entry] = {
    "header": _entry("header", "flex flex-col sm:flex-row items-center justify-between gap-4 py-4 border-b border-[var(--border)]"),
    "footer": _entry("footer", "mt-auto p-4 text-center text-sm text-[var(--muted)]"),
    "main": _entry("main", "flex-1 p-6 space-y-6"),
    "sidebar": _entry("aside", "w-64 min-h-screen border-r border-[var(--border)] p-5 flex flex-col gap-2"),
    "row": _entry("div", "flex flex-wrap gap-4 items-center", center={"class_name": "flex flex-wrap gap-4 items-center justify-center"}),
    "grid": _entry(
        "div",
        "grid grid-cols-1 md:grid-cols-2 lg:grid-cols-3 gap-4",
        **{
            "1": {"class_name": "grid grid-cols-1 gap-4 max-w-lg mx-auto"},
            "2": {"class_name": "grid grid-cols-1 sm:grid-cols-2 gap-4"},
            "3": {"class_name": "grid grid-cols-1 sm:grid-cols-2 lg:grid-cols-3 gap-4"},
            "4": {"class_name": "grid grid-cols-1 sm:grid-cols-2 lg:grid-cols-4 gap-4"},
        },
    ),
    "card": _entry("div", f"{SURFACE} p-6 space-y-3 shadow-[var(--card-shadow)]"),
    "btn": _entry(
        "button",
        BUTTON,
        primary={"class_name": ACCENT_BUTTON},
        secondary={"class_name": OUTLINE_BUTTON},
        ghost={"class_name": GHOST_BUTTON},
        icon={"class_name": "p-2 rounded-full hover:bg-[var(--hover)] cursor-pointer transition-colors"},
        submit={"class_name": f"w-full {ACCENT_BUTTON}"},
    ),
    "input": _entry(
        "input",
        INPUT,
        self_closing=True,
        text={"input_type": "text"},
        number={"input_type": "number"},
        email={"input_type": "email"},
        password={"input_type": "password"},
        search={"input_type": "search"},
    ),
    "select": _entry("select", f"border border-[var(--border-input)] {RADIUS} px-3 py-2 bg-transparent"),
    "h1": _entry(
        "h1",
        "text-3xl font-bold",
        hero={"class_name": "text-5xl md:text-6xl font-extrabold tracking-tight"},
        display={"class_name": "text-4xl md:text-5xl font-bold tracking-tight"},
    ),
    "h2": _entry("h2", "text-2xl font-semibold"),
    "h3": _entry("h3", "text-xl font-semibold"),
    "p": _entry(
        "p",
        muted={"class_name": "text-[var(--muted)]"},
        center={"class_name": "text-center"},
        small={"class_name": "text-sm text-[var(--muted)]"},
        lead={"class_name": "text-lg text-[var(--muted)] max-w-2xl mx-auto text-center"},
    ),
    "text": _entry("span"),
    "badge": _entry("span", "inline-flex items-center rounded-full px-2.5 py-0.5 text-xs font-medium bg-[var(--accent)]/20 text-[var(--accent)]"),
    "list": _entry("ul", "space-y-3"),
    "table": _entry("table", "w-full"),
    "tabs": _entry("div", "flex gap-2"),
    "toggle": _entry("input", self_closing=True, input_type="checkbox"),
    "check": _entry("input", "rounded", self_closing=True, input_type="checkbox"),
    "alert": _entry(
        "div",
        f"{ALERT} border-red-500 bg-red-500/10",
        error={"class_name": f"{ALERT} border-red-500 bg-red-500/10"},
        success={"class_name": f"{ALERT} border-green-500 bg-green-500/10"},
        warning={"class_name": f"{ALERT} border-yellow-500 bg-yellow-500/10"},
    ),
    "spinner": _entry("div", "animate-spin h-6 w-6 border-2 border-current border-t-transparent rounded-full mx-auto"),
    "link": _entry(
        "a",
        "text-[var(--accent)] hover:underline cursor-pointer",
        primary={"class_name": f"{ACCENT_BUTTON} inline-flex items-center justify-center no-underline"},
        secondary={"class_name": f"{OUTLINE_BUTTON} inline-flex items-center justify-center no-underline"},
        ghost={"class_name": f"{GHOST_BUTTON} inline-flex items-center justify-center no-underline"},
    ),
    "form": _entry("form", "space-y-5"),
    "stat": _entry("div", f"{SURFACE} p-5"),
    "progress": _entry("div", "w-full bg-[var(--hover)] rounded-full h-3 overflow-hidden"),
    "chart": _entry("div", f"w-full h-64 border border-[var(--border)] {RADIUS} flex items-center justify-center text-[var(--muted)]"),
    "search": _entry("input", INPUT, self_closing=True, input_type="search"),
    "pagination": _entry("div", "flex gap-2 items-center justify-center"),
    "img": _entry("img", f"max-w-full {RADIUS}", self_closing=True),
    "icon": _entry("span", "text-xl"),
    "logo": _entry("div", "text-xl font-bold"),
    "nav": _entry("nav", "flex flex-wrap gap-3 sm:gap-4", vertical={"class_name": "flex flex-col gap-2"}),
    "slot": _entry("div", "flex-1"),
    "plan": _entry("div", f"{RADIUS} border border-[var(--border)] p-6 flex flex-col items-center gap-4"),
    "section": _entry("section", "py-16 px-6 space-y-6"),
    "code": _entry(
        "code",
        "font-mono text-sm bg-[var(--surface)] px-1.5 py-0.5 rounded",
        block={"tag": "pre", "class_name": CODE_BLOCK},
    ),
    "pre": _entry("pre", CODE_BLOCK),
    "divider": _entry("hr", "border-t border-[var(--border)] my-8", self_closing=True),
    "details": _entry("details", f"{SURFACE} px-6 space-y-3"),
    "summary": _entry("summary", "cursor-pointer select-none py-4 font-semibold text-lg"),
}

INLINE_ELEMENTS = frozenset({"p", "text", "span", "badge", "btn", "button", "a", "link", "icon", "logo"})

ICONS = {
    "search": "🔍",
    "settings": "⚙️",
    "user": "👤",
    "home": "🏠",
    "bell": "🔔",
    "mail": "✉️",
    "star": "⭐",
    "heart": "❤️",
    "check": "✓",
    "close": "✕",
    "menu": "☰",
    "plus": "+",
    "trash": "🗑",
    "edit": "✎",
    "calendar": "📅",
    "chart": "📊",
    "lock": "🔒",
}


def map_element(name: str, modifiers: tuple[str, ...] | list[str] = ()) -> ElementMapping:
    """Mapping for ``name`` with modifier overrides applied left to right.

    Unknown elements map to a plain ``div``.
    """
    entry = ELEMENT_MAP.get(name)
    if entry is None:
        return ElementMapping("div")
    mapping = entry.base
    for modifier in modifiers:
        override = entry.modifiers.get(modifier)
        if override:
            mapping = replace(mapping, **override)
    return mapping


def is_inline(name: str) -> bool:
    return name in INLINE_ELEMENTS
