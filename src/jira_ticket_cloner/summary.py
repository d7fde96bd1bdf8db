"""Compute the summary of a clone from the source summary."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import TargetSpec

_BRACKET_GROUP = re.compile(r"\s*\[[^\]]*\]\s*")
_LEADING_BRACKET_GROUP = re.compile(r"^\s*\[[^\]]*\]\s*")


def transform_summary(target: TargetSpec | None, title: str | None) -> str | None:
    """Adapt a summary to the naming policy of a target.

    Examples with "[QA] Fix login bug":
        strip                  -> "Fix login bug"
        prefix, client "Acme"  -> "[Acme] Fix login bug"
        prefix, no client      -> "Fix login bug"
    """
    if target is None or title is None:
        return title

    if target.naming == "strip":
        return " ".join(_BRACKET_GROUP.sub(" ", title).split())

    without_first_group = _LEADING_BRACKET_GROUP.sub("", title, count=1)
    tag = target.client_tag
    if tag:
        return f"[{tag}] {without_first_group}".strip()
    return without_first_group
