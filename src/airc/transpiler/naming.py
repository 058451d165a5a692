"""Identifier helpers shared by the code generators."""

from __future__ import annotations

import re


_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_WORD_SPLIT = re.compile(r"[-_\s]+")


def capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def lower_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def singularize(word: str) -> str:
    """Naive English singular: ``tasks`` -> ``task``, ``categories`` -> ``category``."""
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith(("ses", "xes", "zes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith(("ss", "us")):
        return word[:-1]
    return word


def pluralize(word: str) -> str:
    """Naive English plural: ``Property`` -> ``Properties``, ``Batch`` -> ``Batches``."""
    if word.endswith("y") and len(word) > 1 and word[-2].lower() not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith(("s", "sh", "ch", "x", "z")):
        return word + "es"
    return word + "s"


def kebab_case(name: str) -> str:
    """``approveClaim`` -> ``approve-claim``."""
    return _CAMEL_BOUNDARY.sub(r"\1-\2", name).replace("_", "-").lower()


def camel_case(name: str) -> str:
    """``approve-claim`` / ``in_progress`` -> ``approveClaim`` / ``inProgress``."""
    parts = [part for part in _WORD_SPLIT.split(name) if part]
    if not parts:
        return name
    return parts[0] + "".join(capitalize(part) for part in parts[1:])


def split_camel(name: str) -> list[str]:
    """``openTickets`` -> ``["open", "Tickets"]``."""
    return _CAMEL_BOUNDARY.sub(r"\1 \2", name).split()


def camel_to_label(name: str) -> str:
    """``dueDate`` -> ``Due Date``."""
    words = [capitalize(word) for word in split_camel(name.replace("_", " ").replace("-", " "))]
    return " ".join(words)


def model_var(model_name: str) -> str:
    """Prisma client accessor for a model: ``OrderItem`` -> ``orderItem``."""
    return lower_first(model_name)


def js_string(value: str) -> str:
    """Single-quoted JS string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"
