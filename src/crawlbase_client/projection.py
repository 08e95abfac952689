"""Streaming projection of selected fields out of a JSON body.

The body is walked once as an ijson event stream. Instead of building the
whole document, a :class:`DepthTracker` follows array/object nesting and the
last property name, and only values at the configured depth are kept.

Three shapes are supported:

* flat fields, where the first value seen for a property wins unless a rule
  with a stronger priority targets the same slot;
* record lists, where each object of an array (the whole body or the value of
  an anchor property) becomes one record, with nested string arrays collected
  into ordered sequences;
* string lists, where every string directly inside a top-level array is kept.
"""

from __future__ import annotations

import io
import json
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import ijson
from ijson.common import JSONError, ObjectBuilder

from .coerce import to_text
from .errors import ProjectionFailure

Token = tuple[str, Any]

SCALAR_EVENTS = frozenset({"string", "number", "boolean", "null"})
CONTAINER_STARTS = frozenset({"start_map", "start_array"})
CONTAINER_ENDS = frozenset({"end_map", "end_array"})


@dataclass(frozen=True)
class FieldRule:
    """Where a JSON property lands and how its scalar is coerced.

    ``priority`` orders competing sources for one slot: a lower number
    replaces a higher one, equal numbers keep the first value seen.
    ``root_only`` restricts the rule to properties of the top-level object;
    ``capture`` lets a container value through as its JSON serialization.
    """

    slot: str
    coerce: Callable[[Any], Any] = to_text
    root_only: bool = False
    priority: int = 0
    capture: bool = False


@dataclass(frozen=True)
class RecordSpec:
    """Shape of the records rebuilt from an array of objects."""

    fields: Mapping[str, FieldRule]
    sequences: Mapping[str, str] = field(default_factory=dict)
    build: Callable[[dict[str, Any]], Any] = dict
    anchor: str | None = None

    def fresh(self) -> dict[str, Any]:
        return {slot: [] for slot in self.sequences.values()}


@dataclass
class Projection:
    fields: dict[str, Any] = field(default_factory=dict)
    records: list[Any] = field(default_factory=list)


@dataclass
class DepthTracker:
    """Nesting counters updated on every token."""

    array_depth: int = 0
    object_depth: int = 0
    property_name: str | None = None
    after_key: bool = False

    @property
    def at_root(self) -> bool:
        return self.object_depth == 1 and self.array_depth == 0

    def advance(self, event: str, value: Any) -> None:
        self.after_key = False
        if event == "start_array":
            self.array_depth += 1
        elif event == "end_array":
            self.array_depth -= 1
        elif event == "start_map":
            self.object_depth += 1
        elif event == "end_map":
            self.object_depth -= 1
        elif event == "map_key":
            self.property_name = value
            self.after_key = True


def iter_tokens(body: bytes | str) -> Iterator[Token]:
    """Yield ``(event, value)`` pairs, raising ProjectionFailure on malformed JSON."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    try:
        for _prefix, event, value in ijson.parse(io.BytesIO(body), use_float=True):
            yield event, value
    except JSONError as exc:
        raise ProjectionFailure(f"Malformed JSON body: {exc}") from exc


def take_value(first: Token, tokens: Iterator[Token]) -> Iterator[Token]:
    """Yield exactly the tokens of one JSON value, starting with ``first``."""
    yield first
    if first[0] not in CONTAINER_STARTS:
        return
    depth = 1
    for token in tokens:
        yield token
        if token[0] in CONTAINER_STARTS:
            depth += 1
        elif token[0] in CONTAINER_ENDS:
            depth -= 1
            if depth == 0:
                return


def build_subtree(tokens: Iterable[Token]) -> Any:
    builder = ObjectBuilder()
    for event, value in tokens:
        builder.event(event, value)
    return builder.value


def _store(projection: Projection, priorities: dict[str, int], rule: FieldRule, value: Any) -> None:
    current = priorities.get(rule.slot)
    if current is not None and current <= rule.priority:
        return
    coerced = rule.coerce(value)
    if coerced is None:
        return
    projection.fields[rule.slot] = coerced
    priorities[rule.slot] = rule.priority


def project_document(
    tokens: Iterable[Token],
    rules: Mapping[str, FieldRule],
    record_spec: RecordSpec | None = None,
) -> Projection:
    """Project flat fields and, when ``record_spec`` names an anchor, its records."""
    projection = Projection()
    priorities: dict[str, int] = {}
    state = DepthTracker()
    stream = iter(tokens)
    for event, value in stream:
        keyed = state.after_key
        at_root = state.at_root
        name = state.property_name
        if keyed and at_root and record_spec is not None and name == record_spec.anchor:
            projection.records = project_records(take_value((event, value), stream), record_spec)
            state.after_key = False
            continue
        rule = rules.get(name) if keyed and name is not None else None
        if rule is not None and rule.root_only and not at_root:
            rule = None
        if event in CONTAINER_STARTS and rule is not None and rule.capture:
            subtree = build_subtree(take_value((event, value), stream))
            _store(projection, priorities, rule, json.dumps(subtree))
            state.after_key = False
            continue
        state.advance(event, value)
        if event in SCALAR_EVENTS and rule is not None:
            _store(projection, priorities, rule, value)
    return projection


def project_fields(tokens: Iterable[Token], rules: Mapping[str, FieldRule]) -> dict[str, Any]:
    return project_document(tokens, rules).fields


def project_records(tokens: Iterable[Token], spec: RecordSpec) -> list[Any]:
    """Rebuild one record per object of the array these tokens describe.

    A value that is not an array yields no records.
    """
    records: list[Any] = []
    pending = spec.fresh()
    state = DepthTracker()
    for event, value in tokens:
        if event == "end_map" and state.object_depth == 1 and state.array_depth == 1:
            records.append(spec.build(pending))
            pending = spec.fresh()
        keyed = state.after_key
        state.advance(event, value)
        if event not in SCALAR_EVENTS:
            continue
        name = state.property_name
        if state.array_depth == 1 and state.object_depth == 1 and keyed:
            rule = spec.fields.get(name or "")
            if rule is not None:
                coerced = rule.coerce(value)
                if coerced is not None:
                    pending[rule.slot] = coerced
        elif state.array_depth == 2 and state.object_depth == 1 and name in spec.sequences:
            item = to_text(value)
            if item is not None:
                pending[spec.sequences[name]].append(item)
    return records


def project_strings(tokens: Iterable[Token]) -> list[str]:
    """Collect the strings found directly inside a top-level array."""
    state = DepthTracker()
    values: list[str] = []
    for event, value in tokens:
        state.advance(event, value)
        if event == "string" and state.array_depth == 1:
            values.append(value)
    return values
