"""Fractional order keys for service lines.

Lines are sorted by a float ``order_index``. Inserting between two siblings
takes the midpoint so no sibling is ever renumbered; only relative order is
meaningful.
"""

from __future__ import annotations

import math
from typing import Any, Sequence

from ..utils.fields import read_field, to_decimal

EMPTY_GROUP_INDEX = 1000.0
EDGE_STEP = 100.0
PACKAGE_BLOCK = 1000


def _order_of(line: Any) -> float:
    return float(to_decimal(read_field(line, "order_index")))


def allocate(destination_lines: Sequence[Any], target_position: int) -> float:
    """Return the order index for a line dropped at ``target_position``.

    ``destination_lines`` must already be sorted by order index and must not
    contain the line being moved.
    """
    if not destination_lines:
        return EMPTY_GROUP_INDEX
    if target_position <= 0:
        return _order_of(destination_lines[0]) - EDGE_STEP
    if target_position >= len(destination_lines):
        return _order_of(destination_lines[-1]) + EDGE_STEP
    before = _order_of(destination_lines[target_position - 1])
    after = _order_of(destination_lines[target_position])
    return (before + after) / 2


def next_package_base(lines: Sequence[Any]) -> float:
    """First free thousand-block after every existing line, for a new package."""
    highest = max((_order_of(line) for line in lines), default=0.0)
    return float(math.ceil(highest / PACKAGE_BLOCK) * PACKAGE_BLOCK + PACKAGE_BLOCK)
