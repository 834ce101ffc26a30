"""
How far step renumbering has to cascade after a step moves.
"""

from __future__ import annotations

import math
from typing import Union

from .models import InvalidArgumentError
from .step import split_step_number


def step_limit(old_step: str, new_step: str) -> Union[int, float]:
    """Return the highest super step whose commits must be renumbered.

    Both arguments are step numbers ('3', '3.2') or 'root'. The result is either a super
    step number or ``math.inf`` when every later step has to be touched.
    """
    try:
        old = split_step_number(old_step)
        new = split_step_number(new_step)
    except InvalidArgumentError:
        # Unknown positions: renumber everything that follows
        return math.inf

    if old.super_step == new.super_step:
        # 1.1 -> 1.2, 1.2 -> 1.1, 1.1 -> 1
        if old.sub_step is not None:
            return old.super_step
        # 1 -> 1.1
        return math.inf

    # 1 -> 2.1
    if old.sub_step is None and new.sub_step is not None and new.super_step == old.super_step + 1:
        return new.super_step

    # 2.1 -> 1
    if new.sub_step is None and old.sub_step is not None and old.super_step == new.super_step + 1:
        return old.super_step

    # 1 -> 2, 1 -> 3.1, 1.1 -> 2.1, 1.1 -> 2
    return math.inf
