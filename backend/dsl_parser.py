"""Reverse compiler: Prisma schema text -> canvas graph.

Only the subset of the grammar that compiler.py emits is understood. Lines
that do not look like `name Type[?|[]] decorators...` are skipped, so
half-written schemas still produce a graph.
"""
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Optional

from errors import ParseError
from models import ATTRIBUTE_TYPES, Attribute, Constraint, Entity, Graph, Position, Relation

log = logging.getLogger(__name__)

BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
LINE_COMMENT = re.compile(r"//.*")
MODEL_HEADER = re.compile(r"^model\s+(\w+)\s*\{\s*(.*?)\s*$")
FIELD_LINE = re.compile(r"^(\w+)\s+(\w+)((?:\[\]|\?)*)(?:\s+(.*))?$")
DEFAULT_DECORATOR = re.compile(r"@default\((.*)\)")

# grid spacing for recovered models
CELL_WIDTH = 320
CELL_HEIGHT = 260


@dataclass
class ParsedField:
    name: str
    type: str
    is_list: bool = False
    is_optional: bool = False
    decorators: str = ""


@dataclass
class ParsedModel:
    name: str
    fields: list[ParsedField] = field(default_factory=list)


def strip_comments(text: str) -> str:
    return LINE_COMMENT.sub("", BLOCK_COMMENT.sub("", text))


def parse_field(line: str) -> Optional[ParsedField]:
    """Parse a single field line, or return None if it is not one"""
    m = FIELD_LINE.match(line)
    if not m:
        return None
    name, base_type, suffix, rest = m.groups()
    return ParsedField(
        name=name,
        type=base_type,
        is_list="[]" in suffix,
        is_optional="?" in suffix,
        decorators=(rest or "").strip(),
    )


def parse_body(lines: list[str]) -> list[ParsedField]:
    fields = []
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("//"):
            continue
        # model-level attributes such as @@index
        if line.startswith("@@"):
            continue
        parsed = parse_field(line)
        if parsed is None:
            log.debug("Skipping unparsable line: %r", line)
            continue
        fields.append(parsed)
    return fields


def model_blocks(text: str):
    """Yield (name, body lines) per model block

    A block opens on a `model Name {` line and closes on a line holding only
    `}`, so braces inside field lines (e.g. @default("{}")) never end it.
    """
    name = None
    body: list[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if name is None:
            m = MODEL_HEADER.match(line)
            if not m:
                continue
            name, rest = m.groups()
            body = []
            if rest == "}":
                yield name, body
                name = None
            elif rest:
                body.append(rest)
            continue
        if line == "}":
            yield name, body
            name = None
            continue
        body.append(line)
    if name is not None:
        log.warning("Model %s is missing its closing brace", name)
        yield name, body


def parse_models(text: str) -> list[ParsedModel]:
    """Extract every model block, in declaration order"""
    models: dict[str, ParsedModel] = {}
    for name, body in model_blocks(strip_comments(text or "")):
        if name in models:
            log.warning("Model %s declared more than once, keeping the last declaration", name)
        models[name] = ParsedModel(name=name, fields=parse_body(body))
    return list(models.values())


def grid_positions(count: int) -> list[Position]:
    """Lay out `count` nodes on a near-square grid"""
    if count == 0:
        return []
    columns = math.ceil(math.sqrt(count))
    return [
        Position(x=(i % columns) * CELL_WIDTH, y=(i // columns) * CELL_HEIGHT)
        for i in range(count)
    ]


def _default_value(decorators: str) -> Optional[str]:
    m = DEFAULT_DECORATOR.search(decorators)
    if not m:
        return None
    # the greedy match may run into later decorators; cut at the matching paren
    value = m.group(1)
    depth = 0
    in_string = False
    for i, ch in enumerate(value):
        if ch == '"' and (i == 0 or value[i - 1] != "\\"):
            in_string = not in_string
        elif in_string:
            continue
        elif ch == "(":
            depth += 1
        elif ch == ")":
            if depth == 0:
                value = value[:i]
                break
            depth -= 1
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1].replace('\\"', '"')
    return value


def field_to_attribute(parsed: ParsedField) -> Attribute:
    decorators = parsed.decorators.split()
    return Attribute(
        name=parsed.name,
        type=parsed.type,
        constraint=Constraint(
            required=not parsed.is_list and not parsed.is_optional,
            unique="@unique" in decorators,
            list=parsed.is_list,
            updated_at="@updatedAt" in decorators,
            is_id="@db.ObjectId" in decorators,
            default_value=_default_value(parsed.decorators),
        ),
    )


def _is_identity(parsed: ParsedField) -> bool:
    return "@id" in parsed.decorators.split()


def infer_relations(models: list[ParsedModel]) -> list[Relation]:
    """One edge per model pair, typed by the first field that links them"""
    names = {m.name for m in models}
    seen = set()
    relations = []
    for model in models:
        for parsed in model.fields:
            if parsed.type not in names:
                continue
            key = "|".join(sorted([model.name, parsed.type]))
            if key in seen:
                continue
            seen.add(key)
            relations.append(Relation(
                id=f"{model.name}-{parsed.type}",
                source_entity_id=model.name,
                target_entity_id=parsed.type,
                relation_type="1-m" if parsed.is_list else "1-1",
            ))
    return relations


def build_graph(models: list[ParsedModel]) -> Graph:
    names = {m.name for m in models}
    entities = []
    for model, position in zip(models, grid_positions(len(models))):
        attributes = []
        for parsed in model.fields:
            if _is_identity(parsed) or parsed.type in names:
                continue
            if parsed.type not in ATTRIBUTE_TYPES:
                log.debug("Skipping %s.%s: unsupported type %s", model.name, parsed.name, parsed.type)
                continue
            attributes.append(field_to_attribute(parsed))
        entities.append(Entity(id=model.name, name=model.name, position=position, attributes=attributes))
    return Graph(entities=entities, relations=infer_relations(models))


def parse_schema(text: str) -> Graph:
    """Rebuild a canvas graph from schema text"""
    models = parse_models(text)
    if not models:
        raise ParseError("no models found")
    return build_graph(models)
