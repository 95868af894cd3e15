# shortcuts.py
"""
User-defined shortcuts ("@name ...") that rewrite a message into a full command.

Patterns use '%' to separate literal text from named placeholders:

    input:  "%who% at %where%"
    output: "@visits +person %who% +place %where%"

so "@v Bo at home" becomes "@visits +person Bo +place home".
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from schemas import ShortcutDefinition

logger = logging.getLogger(__name__)

SENTINEL = "@"
SEPARATOR = "%"


def is_candidate(msg: str) -> bool:
    """True if msg starts with the sentinel and has a space after its first character."""
    return msg.startswith(SENTINEL) and msg.rfind(" ") > 0


def first_token(msg: str) -> str:
    """The leading word without the sentinel."""
    return msg.split(" ")[0][len(SENTINEL):]


def match_pattern(text: str, pattern: str) -> Optional[Dict[str, str]]:
    """
    Bind the placeholders of `pattern` against `text`.
    Literal segments must appear in order; returns None if one is missing.
    """
    parts = pattern.split(SEPARATOR)
    if not text.startswith(parts[0]):
        return None

    values: Dict[str, str] = {}
    index = len(parts[0])
    for i in range(1, len(parts), 2):
        name = parts[i]
        literal = parts[i + 1] if i + 1 < len(parts) else ""
        if not literal and i + 1 >= len(parts) - 1:
            # pattern ends in a placeholder: it takes whatever is left
            if index != len(text):
                values[name] = text[index:]
            break
        found = text.find(literal, index)
        if found < 0:
            return None
        values[name] = text[index:found]
        index = found + len(literal)
    return values


def fill_pattern(pattern: str, values: Dict[str, str]) -> Optional[str]:
    """Substitute bound values into `pattern`; None if a placeholder is unbound."""
    parts = pattern.split(SEPARATOR)
    for i in range(1, len(parts), 2):
        if parts[i] not in values:
            return None
        parts[i] = values[parts[i]]
    return "".join(parts)


def convert_by_shortcut(msg: str, shortcut: ShortcutDefinition) -> Optional[str]:
    """Rewrite msg with one shortcut, or None if its input pattern does not match."""
    remainder = msg[msg.find(" ") + 1:]
    values = match_pattern(remainder, shortcut.input_pattern)
    if values is None:
        return None
    return fill_pattern(shortcut.output_pattern, values)


def expand(msg: str, shortcuts: List[ShortcutDefinition]) -> str:
    """
    Repeatedly expand the leading shortcut. Shortcuts are tried in the given
    order and the first one producing a command wins each round. At most
    len(shortcuts) rounds run.
    """
    msg = msg.strip()
    for _ in range(len(shortcuts)):
        if not is_candidate(msg):
            break
        target = first_token(msg)
        expanded = None
        for sc in shortcuts:
            if sc.name != target:
                continue
            nxt = convert_by_shortcut(msg, sc)
            if nxt is not None and is_candidate(nxt.strip()):
                expanded = nxt.strip()
                break
            logger.debug("shortcut %r did not match %r", sc.name, msg)
        if expanded is None:
            break
        logger.debug("expanded %r -> %r", msg, expanded)
        msg = expanded
    return msg
