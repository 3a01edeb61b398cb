"""
DocMeta Backend — Property Tree Builder and Extended-Literal JSON
===================================================================

What:  Turns the flat property rows of an entity into nested trees, and writes
       JSON that can carry regular expressions and function sources.
Who:   EntityService (GET /entity/get and entity copy) and the tests.

Tree building:
    Input is an ordered list of dicts, each with an id and a parent id.

        [{id: 1, parentId: None}, {id: 2, parentId: 1}, {id: 4, parentId: 99}]
                              ↓ array_to_tree
        {children: [{id: 1, children: [{id: 2, children: []}]},
                    {id: 4, children: []}]}

    - Siblings keep their input order.
    - A parent id that matches no node (None, -1, 99 above) makes a root.
    - Descent tracks visited ids, so a cycle (A under B, B under A) is cut at
      the first repeat. For each cycle not reachable from a root, the first
      member met walking up from a leftover node becomes a root; nodes hanging
      below the cycle stay under their parents. Every input node appears
      exactly once.

Extended literals:
    JSON has no regex or function type. On the way out they become marker
    strings; parse_with_extended_literals turns the markers back into
    RegExpLiteral / FunctionLiteral holding the original source text. The
    source is never evaluated.

        {"value": re.compile("^a+$", re.I)}  →  {"value": "__docmeta_regexp__:/^a+$/i"}
"""

import inspect
import json
import re
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Hashable, Iterable, List, Optional

REGEXP_MARKER = "__docmeta_regexp__:"
FUNCTION_MARKER = "__docmeta_function__:"

# Python re flags <-> JavaScript-style flag letters
_FLAG_LETTERS = (
    (re.IGNORECASE, "i"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.VERBOSE, "x"),
)
_REGEXP_SOURCE = re.compile(r"^/(?P<source>.*)/(?P<flags>[a-z]*)$", re.DOTALL)


@dataclass(frozen=True)
class RegExpLiteral:
    """A regular expression carried as source text plus flag letters."""

    source: str
    flags: str = ""

    @classmethod
    def from_pattern(cls, pattern: "re.Pattern") -> "RegExpLiteral":
        flags = "".join(letter for flag, letter in _FLAG_LETTERS if pattern.flags & flag)
        return cls(source=pattern.pattern, flags=flags)

    @classmethod
    def from_text(cls, text: str) -> "RegExpLiteral":
        """Parses `/source/flags`; text without slashes is taken as bare source."""
        match = _REGEXP_SOURCE.match(text or "")
        if match is None:
            return cls(source=text or "")
        return cls(source=match.group("source"), flags=match.group("flags"))

    def to_text(self) -> str:
        return f"/{self.source}/{self.flags}"

    def compile(self) -> "re.Pattern":
        """Compiles with the flags Python understands; unknown letters (g, u, y) are dropped."""
        flags = 0
        for flag, letter in _FLAG_LETTERS:
            if letter in self.flags:
                flags |= flag
        return re.compile(self.source, flags)


@dataclass(frozen=True)
class FunctionLiteral:
    """A function-like value carried as its source text."""

    source: str

    @classmethod
    def from_callable(cls, fn: Any) -> "FunctionLiteral":
        try:
            return cls(source=inspect.getsource(fn).strip())
        except (OSError, TypeError):
            return cls(source=repr(fn))


# ══════════════════════════════════════════════════════════════════════════
# Tree Building
# ══════════════════════════════════════════════════════════════════════════


def array_to_tree(
    nodes: Iterable[Dict[str, Any]],
    id_key: str = "id",
    parent_key: str = "parentId",
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Nest a flat, ordered list of nodes under their parents.

    Args:
        nodes:      dicts carrying `id_key` and (optionally) `parent_key`
        id_key:     name of the identifier field
        parent_key: name of the parent-identifier field; None means root

    Returns:
        A synthetic root `{"children": [...]}`. Each output node is a shallow
        copy of its input with a `children` list; inputs are left untouched.
    """
    items = list(nodes)
    known_ids = {item[id_key] for item in items}

    by_parent: Dict[Hashable, List[Dict[str, Any]]] = defaultdict(list)
    roots: List[Dict[str, Any]] = []
    for item in items:
        parent = item.get(parent_key)
        if parent is None or parent not in known_ids or parent == item[id_key]:
            roots.append(item)
        else:
            by_parent[parent].append(item)

    visited = set()

    def build(item: Dict[str, Any]) -> Dict[str, Any]:
        visited.add(item[id_key])
        node = dict(item)
        node["children"] = [
            build(child)
            for child in by_parent.get(item[id_key], [])
            if child[id_key] not in visited
        ]
        return node

    # Iterative descent would avoid recursion limits; property trees are shallow.
    children = [build(item) for item in roots]

    # Anything left over sits on a cycle or hangs below one. Walk up to the
    # first repeated id and promote that cycle member, so tails stay nested.
    by_id = {item[id_key]: item for item in items}
    for item in items:
        if item[id_key] in visited:
            continue
        seen = set()
        current = item
        while current[id_key] not in seen:
            seen.add(current[id_key])
            current = by_id[current[parent_key]]
        children.append(build(current))

    return {"children": children}


def flatten_tree(tree: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Pre-order walk of an array_to_tree result, dropping `children` keys."""
    flat: List[Dict[str, Any]] = []
    stack = list(reversed(tree.get("children", [])))
    while stack:
        node = stack.pop()
        flat.append({k: v for k, v in node.items() if k != "children"})
        stack.extend(reversed(node.get("children", [])))
    return flat


# ══════════════════════════════════════════════════════════════════════════
# Extended-Literal JSON
# ══════════════════════════════════════════════════════════════════════════


def _encode_extended(value: Any) -> Any:
    """json.dumps `default` hook for everything plain JSON cannot hold."""
    if isinstance(value, RegExpLiteral):
        return REGEXP_MARKER + value.to_text()
    if isinstance(value, re.Pattern):
        return REGEXP_MARKER + RegExpLiteral.from_pattern(value).to_text()
    if isinstance(value, FunctionLiteral):
        return FUNCTION_MARKER + value.source
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if callable(value):
        return FUNCTION_MARKER + FunctionLiteral.from_callable(value).source
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def stringify_with_extended_literals(value: Any, indent: Optional[int] = 2) -> str:
    """
    Serialize nested dicts/lists/primitives to JSON text.

    Regular expressions and function-like values become marker strings instead
    of being dropped; plain JSON content round-trips through json.loads as-is.
    """
    return json.dumps(value, default=_encode_extended, ensure_ascii=False, indent=indent)


def _decode_extended(value: Any) -> Any:
    if isinstance(value, str):
        if value.startswith(REGEXP_MARKER):
            return RegExpLiteral.from_text(value[len(REGEXP_MARKER):])
        if value.startswith(FUNCTION_MARKER):
            return FunctionLiteral(source=value[len(FUNCTION_MARKER):])
        return value
    if isinstance(value, list):
        return [_decode_extended(item) for item in value]
    if isinstance(value, dict):
        return {key: _decode_extended(item) for key, item in value.items()}
    return value


def parse_with_extended_literals(text: str) -> Any:
    """Reader paired with stringify_with_extended_literals."""
    return _decode_extended(json.loads(text))
