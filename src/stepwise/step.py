"""
Step descriptor parsing for commit subjects of the form ``Step <super>[.<sub>]: <text>``.
"""

from __future__ import annotations

import re
from typing import Optional

from .models import InvalidArgumentError, StepDescriptor


ROOT = "root"

_STEP_PATTERN = re.compile(r"^Step (\d+)(?:\.(\d+))?: (.*)$", re.DOTALL)
_SUPER_STEP_PATTERN = re.compile(r"^Step (\d+): (.*)$", re.DOTALL)
_STEP_NUMBER_PATTERN = re.compile(r"^(\d+)(?:\.(\d+))?$")


def parse_descriptor(subject: Optional[str]) -> Optional[StepDescriptor]:
    """Parse a step or sub-step subject. Returns None for non-step commits."""
    if not subject:
        return None
    match = _STEP_PATTERN.match(subject)
    if not match:
        return None
    super_step, sub_step, text = match.groups()
    return StepDescriptor(
        super_step=int(super_step),
        sub_step=int(sub_step) if sub_step is not None else None,
        text=text,
    )


def parse_super_descriptor(subject: Optional[str]) -> Optional[StepDescriptor]:
    """Parse a subject only if it belongs to a super step (no sub-step number)."""
    if not subject:
        return None
    match = _SUPER_STEP_PATTERN.match(subject)
    if not match:
        return None
    super_step, text = match.groups()
    return StepDescriptor(super_step=int(super_step), text=text)


def split_step_number(number: str) -> StepDescriptor:
    """Split a step number string ('root', '3' or '3.2') into a descriptor.

    'root' maps to super step 0. Anything else that does not look like a step number
    raises InvalidArgumentError.
    """
    if number == ROOT:
        return StepDescriptor(super_step=0)
    match = _STEP_NUMBER_PATTERN.match(number or "")
    if not match:
        raise InvalidArgumentError(f"Invalid step number: {number!r}")
    super_step, sub_step = match.groups()
    return StepDescriptor(
        super_step=int(super_step),
        sub_step=int(sub_step) if sub_step is not None else None,
    )


def next_step(previous: Optional[StepDescriptor], super_step: bool) -> str:
    """Return the number a step gets when it directly follows ``previous``.

    Sub-steps of super step N come before the commit of step N itself, so a step that
    follows super step N opens super step N+1.
    """
    if previous is None:
        return "1" if super_step else "1.1"
    if previous.is_super:
        following = previous.super_step + 1
        return str(following) if super_step else f"{following}.1"
    if super_step:
        return str(previous.super_step)
    return f"{previous.super_step}.{previous.sub_step + 1}"


def format_subject(number: str, text: str) -> str:
    return f"Step {number}: {text}"
