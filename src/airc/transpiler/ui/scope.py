"""Immutable rendering scope threaded through JSX emission."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, TypeAlias


AuthTier: TypeAlias = Literal["auth", "public", "protected"]


@dataclass(frozen=True, slots=True)
class Scope:
    """Rendering context passed by value down the UI tree.

    ``auth_gating`` is set once at the root when the app declares
    ``@auth(required)`` together with a login page; ``auth_tier`` is set by
    the page being rendered.
    """

    iter_var: str | None = None
    iter_data: str | None = None
    base_array: str | None = None
    inside_iter: bool = False
    inside_form: bool = False
    inside_nav: bool = False
    form_action: str | None = None
    auth_gating: bool = False
    auth_tier: AuthTier | None = None

    def iterating(self, var: str, data: str, base_array: str | None) -> Scope:
        return replace(self, iter_var=var, iter_data=data, base_array=base_array, inside_iter=True)

    def in_form(self, action: str | None) -> Scope:
        return replace(self, inside_form=True, form_action=action)

    def in_nav(self) -> Scope:
        return replace(self, inside_nav=True)

    def on_page(self, tier: AuthTier | None) -> Scope:
        return replace(self, auth_tier=tier)
