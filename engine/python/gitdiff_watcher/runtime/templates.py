"""Placeholder interpolation for user commands."""

from __future__ import annotations

import re
from typing import Mapping


PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def interpolate(template: str, variables: Mapping[str, str]) -> str:
    """Replace ``{{NAME}}`` tokens with ``variables[NAME]``.

    Unknown names are left as written.
    """

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return str(variables[name])

    return PLACEHOLDER.sub(_substitute, template)
