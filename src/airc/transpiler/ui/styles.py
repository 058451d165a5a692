"""``index.css``: CSS custom properties from ``@style`` plus base element rules."""

from __future__ import annotations

from airc.transpiler.context import Context
from airc.transpiler.output import join_lines


DEFAULT_ACCENT = "#6366f1"
DEFAULT_RADIUS = 12
RESERVED_KEYS = frozenset({"theme", "accent", "radius", "font", "density", "maxWidth"})

DARK_PALETTE = {
    "bg": "#030712",
    "bg-secondary": "rgba(255,255,255,0.03)",
    "fg": "#f3f4f6",
    "muted": "rgba(255,255,255,0.5)",
    "border": "rgba(255,255,255,0.1)",
    "border-input": "rgba(255,255,255,0.2)",
    "hover": "rgba(255,255,255,0.08)",
    "card-shadow": "0 1px 3px rgba(0,0,0,0.4)",
}
LIGHT_PALETTE = {
    "bg": "#ffffff",
    "bg-secondary": "#f9fafb",
    "fg": "#111827",
    "muted": "rgba(0,0,0,0.5)",
    "border": "#e5e7eb",
    "border-input": "#d1d5db",
    "hover": "rgba(0,0,0,0.05)",
    "card-shadow": "0 1px 3px rgba(0,0,0,0.1)",
}
FONT_STACKS = {
    "sans": ("system-ui", "-apple-system", "sans-serif"),
    "mono": ("'SF Mono'", "'Fira Code'", "monospace"),
    "display": ("'Inter'", "system-ui", "sans-serif"),
    "serif": ("Georgia", "serif"),
}

BASE_RULES = """\
body {
  margin: 0;
  font-family: %(font)s;
  -webkit-font-smoothing: antialiased;
  background: var(--bg);
  color: var(--fg);
}

* {
  box-sizing: border-box;
}

table { width: 100%%; border-collapse: collapse; }
th { text-align: left; font-weight: 600; padding: 12px 16px; border-bottom: 2px solid var(--border); font-size: 0.875rem; }
td { padding: 12px 16px; border-bottom: 1px solid var(--border); }
tbody tr:hover { background: var(--hover); }

.form-group { display: flex; flex-direction: column; gap: 6px; }
.form-group label { font-size: 0.875rem; font-weight: 500; color: var(--muted); }

input:not([type="checkbox"]):not([type="radio"]), select, textarea {
  width: 100%%; border: 1px solid var(--border-input); border-radius: var(--radius);
  padding: 10px 14px; background: transparent; color: var(--fg);
  font-size: 0.875rem; outline: none; transition: border-color 0.2s;
}
input:focus, select:focus, textarea:focus {
  border-color: var(--accent); box-shadow: 0 0 0 3px rgba(var(--accent-rgb), 0.15);
}
input::placeholder, textarea::placeholder { color: var(--muted); }
input[type="checkbox"], input[type="radio"] { width: auto; cursor: pointer; accent-color: var(--accent); }

button {
  display: inline-flex; align-items: center; justify-content: center; gap: 8px;
  border-radius: var(--radius); font-size: 0.875rem; font-weight: 500;
  cursor: pointer; transition: all 0.15s; border: none;
}
button:disabled { opacity: 0.5; cursor: not-allowed; }

.empty-state { text-align: center; padding: 48px 24px; color: var(--muted); font-size: 0.875rem; }
.list-row { display: flex; align-items: center; gap: 12px; padding: 12px 16px; border-bottom: 1px solid var(--border); }
.list-row:last-child { border-bottom: none; }

h1 { font-size: 1.875rem; font-weight: 700; letter-spacing: -0.025em; }
h2 { font-size: 1.25rem; font-weight: 600; }

aside { background: var(--surface); }
"""


def hex_to_rgb(color: str) -> str:
    """``#6366f1`` -> ``99, 102, 241``; short forms are expanded first."""
    digits = color.lstrip("#")
    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits)
    digits = digits[:6]
    if len(digits) != 6:
        digits = DEFAULT_ACCENT[1:]
    return ", ".join(str(int(digits[i : i + 2], 16)) for i in (0, 2, 4))


def font_family(font: object) -> str:
    if not isinstance(font, str) or not font:
        return ", ".join(FONT_STACKS["sans"])
    families: list[str] = []
    for part in font.split("+"):
        families.extend(FONT_STACKS.get(part.strip(), (part.strip(),)))
    return ", ".join(families)


def generate_index_css(context: Context) -> str:
    style = context.style
    accent = style.get("accent")
    accent = accent if isinstance(accent, str) and accent.startswith("#") else DEFAULT_ACCENT
    radius = style.get("radius")
    radius = radius if isinstance(radius, int | float) and not isinstance(radius, bool) else DEFAULT_RADIUS
    palette = LIGHT_PALETTE if style.get("theme") == "light" else DARK_PALETTE

    variables = [f"  --accent: {accent};", f"  --accent-rgb: {hex_to_rgb(accent)};", f"  --radius: {radius}px;"]
    variables.extend(f"  --{name}: {value};" for name, value in palette.items())
    variables.append("  --surface: var(--bg-secondary);")
    variables.extend(
        f"  --{key}: {value};"
        for key, value in style.items()
        if key not in RESERVED_KEYS and isinstance(value, str) and value.startswith("#")
    )

    lines = ["@tailwind base;", "@tailwind components;", "@tailwind utilities;", "", ":root {", *variables, "}", ""]
    lines.append(BASE_RULES % {"font": font_family(style.get("font"))})
    return join_lines(lines)
