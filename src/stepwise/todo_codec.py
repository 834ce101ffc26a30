"""
Conversion between rebase todo text and RebaseTodo operations.
"""

from __future__ import annotations

import re
from typing import Optional

from .models import RebaseMethod, RebaseOperation, RebaseTodo


_OPERATION_PATTERN = re.compile(r"^(?P<method>[a-z]+) (?P<rest>.{7,})$")
_METHODS = {method.value: method for method in RebaseMethod}


def decode_line(line: str) -> Optional[RebaseOperation]:
    """Parse a single todo line, or return None if it is not an operation."""
    match = _OPERATION_PATTERN.match(line)
    if not match:
        return None
    method = _METHODS.get(match.group("method"))
    if method is None:
        return None

    rest = match.group("rest")
    if not method.takes_hash:
        return RebaseOperation(method=method, message=rest)

    commit_hash, _, message = rest.partition(" ")
    return RebaseOperation(method=method, hash=commit_hash, message=message)


def decode(text: str) -> Optional[RebaseTodo]:
    """Convert rebase todo content to a RebaseTodo.

    Returns None when the text holds no operation at all, which means there is nothing
    to transform. Other lines are kept in place as passthrough entries.
    """
    operations = []
    found = False
    for line in text.splitlines():
        operation = decode_line(line)
        if operation is None:
            operations.append(RebaseOperation.passthrough(line))
        else:
            operations.append(operation)
            found = True

    if not found:
        return None
    return RebaseTodo(operations=operations)


def encode_operation(operation: RebaseOperation) -> str:
    if operation.is_passthrough:
        return operation.raw or ""
    parts = [operation.method.value]
    if operation.hash:
        parts.append(operation.hash)
    if operation.message:
        parts.append(operation.message)
    return " ".join(parts)


def encode(todo: RebaseTodo) -> str:
    """Convert a RebaseTodo back to todo file content, ending with a single newline."""
    return "\n".join(encode_operation(op) for op in todo.operations) + "\n"
