#!/usr/bin/env python3
"""`${field}` substitution for release titles and notes."""

from __future__ import annotations

import re
from typing import Any, Mapping

FIELDS = (
    "version",
    "latestVersion",
    "changelog",
    "name",
    "repo.owner",
    "repo.repository",
    "branchName",
)

_PLACEHOLDER = re.compile(r"\$\{(" + "|".join(re.escape(f) for f in FIELDS) + r")\}")


def _context_value(context: Mapping[str, Any], path: str) -> str:
    node: Any = context
    for part in path.split("."):
        if not isinstance(node, Mapping):
            return ""
        node = node.get(part)
    return "" if node is None else str(node)


def interpolate(template: str, context: Mapping[str, Any]) -> str:
    """Replace every known placeholder in one pass; unknown `${...}` stay verbatim.

    Substituted values are not rescanned, so a changelog containing `${name}`
    is inserted as-is.
    """
    return _PLACEHOLDER.sub(lambda m: _context_value(context, m.group(1)), template)
