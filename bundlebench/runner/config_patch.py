"""Set and reset options passed to the app constructor in ember-cli-build.js.

The build file is parsed with tree-sitter only to locate byte ranges; edits
are spliced into the original bytes so everything outside the touched
property values is preserved byte for byte.
"""
from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

from .constants import APP_CONSTRUCTOR
from .errors import ConfigPatchError
from .utils import atomic_write_text

JS_LANGUAGE = Language(tree_sitter_javascript.language())

# Object members that count as properties; comments are named children too
_MEMBER_TYPES = ("pair", "shorthand_property_identifier", "spread_element", "method_definition")

# (start_byte, end_byte, replacement) on the encoded source
Edit = Tuple[int, int, str]


def to_js(value: Any) -> str:
    """Serialize like JSON.stringify (no whitespace)."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _quote_key(key: str) -> str:
    return "'" + key.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _walk(node: Node) -> Iterator[Node]:
    stack = [node]
    while stack:
        n = stack.pop()
        yield n
        stack.extend(reversed(n.children))


def _text(data: bytes, node: Node) -> str:
    return data[node.start_byte:node.end_byte].decode("utf-8")


def _parse(data: bytes) -> Node:
    root = Parser(JS_LANGUAGE).parse(data).root_node
    if root.has_error:
        bad = next((n for n in _walk(root) if n.type == "ERROR" or n.is_missing), root)
        row, col = bad.start_point[0] + 1, bad.start_point[1] + 1
        raise ConfigPatchError(f"Could not parse build config: syntax error at line {row}, column {col}")
    return root


def _options_object(data: bytes, constructor: str) -> Node:
    calls = []
    for node in _walk(_parse(data)):
        if node.type != "new_expression":
            continue
        callee = node.child_by_field_name("constructor")
        if callee is not None and callee.type == "identifier" and _text(data, callee) == constructor:
            calls.append(node)
    if not calls:
        raise ConfigPatchError(f"No `new {constructor}(...)` call found in build config")
    if len(calls) > 1:
        raise ConfigPatchError(f"Expected one `new {constructor}(...)` call, found {len(calls)}")
    args = calls[0].child_by_field_name("arguments")
    objects = [a for a in args.named_children if a.type == "object"] if args is not None else []
    if len(objects) != 1:
        raise ConfigPatchError(
            f"`new {constructor}(...)` must receive exactly one object literal, found {len(objects)}")
    return objects[0]


def find_options_object(source: str, constructor: str = APP_CONSTRUCTOR) -> Node:
    """Return the object-literal argument of the single `new <constructor>(...)` call."""
    return _options_object(source.encode("utf-8"), constructor)


def _property_key(data: bytes, prop: Node) -> Optional[str]:
    if prop.type == "shorthand_property_identifier":
        return _text(data, prop)
    if prop.type != "pair":
        return None
    key = prop.child_by_field_name("key")
    if key.type == "property_identifier":
        return _text(data, key)
    if key.type == "string":
        return _text(data, key)[1:-1]
    # computed and numeric keys
    return None


def _line_indent(data: bytes, offset: int) -> str:
    line_start = data.rfind(b"\n", 0, offset) + 1
    line = data[line_start:offset].decode("utf-8")
    return line[: len(line) - len(line.lstrip())]


def _insertion(data: bytes, obj: Node, entries: List[str]) -> Edit:
    props = [p for p in obj.named_children if p.type in _MEMBER_TYPES]
    if not props:
        return obj.start_byte, obj.end_byte, "{ " + ", ".join(entries) + " }"
    last = props[-1]
    if last.start_point[0] == obj.start_point[0]:
        return last.end_byte, last.end_byte, "".join(f", {e}" for e in entries)
    indent = _line_indent(data, last.start_byte)
    return last.end_byte, last.end_byte, "".join(f",\n{indent}{e}" for e in entries)


def _splice(data: bytes, edits: Iterable[Edit]) -> bytes:
    out = data
    for start, end, text in sorted(edits, key=lambda e: e[0], reverse=True):
        out = out[:start] + text.encode("utf-8") + out[end:]
    return out


def _patch(source: str, values: Mapping[str, str], constructor: str,
           insert_missing: bool, strict: bool) -> str:
    if not values:
        return source
    data = source.encode("utf-8")
    obj = _options_object(data, constructor)
    edits: List[Edit] = []
    seen = set()
    for prop in obj.named_children:
        key = _property_key(data, prop)
        if key is None or key not in values:
            continue
        seen.add(key)
        if prop.type == "shorthand_property_identifier":
            # `{ fingerprint }` becomes `{ fingerprint: <value> }`
            edits.append((prop.start_byte, prop.end_byte, f"{key}: {values[key]}"))
        else:
            value = prop.child_by_field_name("value")
            edits.append((value.start_byte, value.end_byte, values[key]))

    missing = [k for k in values if k not in seen]
    if missing and strict:
        raise ConfigPatchError(
            f"Option(s) {', '.join(missing)} not found in `new {constructor}(...)` options")
    if missing and insert_missing:
        edits.append(_insertion(data, obj, [f"{_quote_key(k)}: {values[k]}" for k in missing]))

    patched = _splice(data, edits)
    # the result must still have the expected shape
    _options_object(patched, constructor)
    return patched.decode("utf-8")


def apply_overrides(source: str, overrides: Mapping[str, Any], constructor: str = APP_CONSTRUCTOR,
                    strict: bool = False) -> str:
    """Set each override key on the constructor options to its JSON value.

    Keys missing from the options object are inserted, or raise
    ConfigPatchError when strict is set.
    """
    values = {k: to_js(v) for k, v in overrides.items()}
    return _patch(source, values, constructor, insert_missing=True, strict=strict)


def clear_overrides(source: str, keys: Iterable[str], constructor: str = APP_CONSTRUCTOR) -> str:
    """Reset the given option keys to `{}`; absent keys are skipped."""
    values = {k: "{}" for k in keys}
    return _patch(source, values, constructor, insert_missing=False, strict=False)


def read_build_file(path: Path) -> str:
    # newline="" keeps CRLF files intact
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_build_file(path: Path, text: str) -> None:
    atomic_write_text(path, text)


def patch_build_file(path: Path, overrides: Mapping[str, Any], constructor: str = APP_CONSTRUCTOR,
                     strict: bool = False) -> None:
    source = read_build_file(path)
    write_build_file(path, apply_overrides(source, overrides, constructor, strict=strict))


def clean_build_file(path: Path, keys: Iterable[str], constructor: str = APP_CONSTRUCTOR) -> None:
    keys = list(keys)
    if not keys:
        return
    source = read_build_file(path)
    write_build_file(path, clear_overrides(source, keys, constructor))
