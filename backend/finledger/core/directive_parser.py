"""Directive Parser — extracts ACTION_CALL directives from free model text.

Invariants:
    - Directives are returned in the order they appear in the text
    - Each literal is delimited by balanced-brace scanning that skips braces inside
      JSON string literals and honours backslash escapes
    - One malformed directive invalidates the whole batch (InferenceMalformedError)
    - No directives → empty list (the text is a plain answer)

Design Decisions:
    - "arguments" may arrive as an object or as a JSON-encoded string; both normalize
      to a dict
    - FUNCTION_CALL is accepted as a synonym marker
"""

import json
import re

from finledger.core.errors import InferenceMalformedError
from finledger.core.records import FunctionCall

DIRECTIVE_MARKER = re.compile(r"\b(?:ACTION|FUNCTION)_CALL:\s*", re.IGNORECASE)


def find_balanced_end(text: str, start: int) -> int | None:
    """Index just past the brace closing text[start] ('{'), or None if never closed."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def _decode_call(literal: str, position: int) -> FunctionCall:
    try:
        payload = json.loads(literal)
    except json.JSONDecodeError as e:
        raise InferenceMalformedError(f"Directive at {position} is not valid JSON: {e.msg}")
    if not isinstance(payload, dict):
        raise InferenceMalformedError(f"Directive at {position} is not an object")

    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise InferenceMalformedError(f"Directive at {position} has no action name")

    arguments = payload.get("arguments", {})
    if arguments is None:
        arguments = {}
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as e:
            raise InferenceMalformedError(
                f"Directive '{name}' has undecodable arguments: {e.msg}"
            )
    if not isinstance(arguments, dict):
        raise InferenceMalformedError(f"Directive '{name}' arguments must be an object")

    return FunctionCall(name=name.strip(), arguments=arguments)


def extract_directives(text: str) -> list[FunctionCall]:
    """All directives in textual order. Raises InferenceMalformedError on any bad literal."""
    calls: list[FunctionCall] = []
    cursor = 0
    while True:
        marker = DIRECTIVE_MARKER.search(text, cursor)
        if marker is None:
            return calls
        start = marker.end()
        if start >= len(text) or text[start] != "{":
            raise InferenceMalformedError(f"Directive at {marker.start()} has no object literal")
        end = find_balanced_end(text, start)
        if end is None:
            raise InferenceMalformedError(f"Directive at {marker.start()} has unbalanced braces")
        calls.append(_decode_call(text[start:end], marker.start()))
        cursor = end


def has_directive(text: str) -> bool:
    return DIRECTIVE_MARKER.search(text) is not None
