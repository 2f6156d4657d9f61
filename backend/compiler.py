"""Forward compiler: canvas graph -> Prisma schema text (MongoDB flavour)."""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Union

from config import DEFAULT_SETTINGS, Settings
from errors import CompileError, CompileWarning
from models import Attribute, Entity, Graph, Relation, SchemaDocument
from serializer import coerce_graph, deserialize_schema

log = logging.getLogger(__name__)

ID_FIELD = '  id String @id @default(auto()) @map("_id") @db.ObjectId'

NUMERIC_TYPE = re.compile(r"^(Int|BigInt|Float|Decimal)$", re.IGNORECASE)
BOOLEAN_TYPE = re.compile(r"^Boolean$", re.IGNORECASE)
DATETIME_TYPE = re.compile(r"^DateTime$", re.IGNORECASE)
BOOLEAN_LITERAL = re.compile(r"^(true|false)$", re.IGNORECASE)
INTEGER_LITERAL = re.compile(r"^-?\d+$")
ARRAY_LITERAL = re.compile(r"^\[.*\]$")


@dataclass
class CompileResult:
    schema: str
    warnings: list[CompileWarning] = field(default_factory=list)


def capitalize(name: str) -> str:
    if not name:
        return "Model"
    return name[0].upper() + name[1:]


def uncapitalize(name: str) -> str:
    if not name:
        return "model"
    return name[0].lower() + name[1:]


def pluralize(name: str) -> str:
    if not name:
        return "items"
    return name + "es" if name.endswith("s") else name + "s"


def default_decorator(field_type: str, raw: Optional[str]) -> Optional[str]:
    """Render @default(...) for a raw default string, or None if it has no DSL form"""
    if raw is None or len(str(raw)) == 0:
        return None
    dv = str(raw).strip()

    if dv == "now()":
        return "@default(now())"
    if BOOLEAN_TYPE.match(field_type) and BOOLEAN_LITERAL.match(dv):
        return f"@default({dv.lower()})"
    if NUMERIC_TYPE.match(field_type) and INTEGER_LITERAL.match(dv):
        return f"@default({dv})"
    if field_type.endswith("[]") and ARRAY_LITERAL.match(dv):
        return f"@default({dv})"
    if not DATETIME_TYPE.match(field_type):
        escaped = dv.replace('"', '\\"')
        return f'@default("{escaped}")'
    # DateTime only supports now()
    return None


def field_line(attribute: Attribute) -> str:
    constraint = attribute.constraint
    name = attribute.name or "field"
    field_type = attribute.type or "String"
    if constraint.list:
        field_type += "[]"
    marker = "?" if constraint.optional else ""

    decorators = []
    default = default_decorator(field_type, constraint.default_value)
    if default:
        decorators.append(default)
    if constraint.unique:
        decorators.append("@unique")
    if constraint.updated_at:
        decorators.append("@updatedAt")
    if constraint.is_id:
        decorators.append("@db.ObjectId")

    line = f"  {name} {field_type}{marker}"
    if decorators:
        line += " " + " ".join(decorators)
    return line


class _ModelBlock:
    def __init__(self, name: str):
        self.name = name
        self.fields = [ID_FIELD]

    def add(self, line: str):
        # identical lines are only emitted once
        if line not in self.fields:
            self.fields.append(line)

    def render(self) -> str:
        return f"model {self.name} {{\n" + "\n".join(self.fields) + "\n}"


def expand_relation(relation: Relation, source: _ModelBlock, target: _ModelBlock) -> Optional[CompileWarning]:
    """Add the relation fields for one edge to both model blocks"""
    edge_type = relation.relation_type or ""
    source_model = source.name
    target_model = target.name

    if edge_type == "1-m":
        foreign_key = f"{uncapitalize(source_model)}Id"
        source.add(f"  {pluralize(target_model.lower())} {target_model}[]")
        target.add(f"  {foreign_key} String @db.ObjectId")
        target.add(f"  {uncapitalize(source_model)} {source_model} @relation(fields: [{foreign_key}])")
    elif edge_type == "1-1":
        foreign_key = f"{uncapitalize(target_model)}Id"
        source.add(f"  {foreign_key} String? @db.ObjectId")
        source.add(f"  {uncapitalize(target_model)} {target_model}? @relation(fields: [{foreign_key}])")
        target.add(f"  {uncapitalize(source_model)} {source_model}?")
    elif edge_type in ("m-1", "m-n"):
        # many-to-one is rendered like many-to-many
        source.add(f"  {pluralize(target_model.lower())} {target_model}[]")
        target.add(f"  {pluralize(source_model.lower())} {source_model}[]")
    else:
        source.add(f"  // relation to {target_model} ({edge_type or 'unknown'})")
        message = f"Unknown relation type {edge_type or 'unknown'!r} on {relation.id}"
        log.warning(message)
        return CompileWarning("unknown_relation_type", relation.id, message)
    return None


def render_header(settings: Settings) -> str:
    return (
        "generator client {\n"
        f'  provider = "{settings.schema_generator}"\n'
        "}\n"
        "\n"
        "datasource db {\n"
        f'  provider = "{settings.schema_datasource}"\n'
        f'  url      = env("{settings.schema_url_env}")\n'
        "}\n"
    )


def _build(entities: Sequence[Entity], relations: Sequence[Relation], settings: Settings) -> CompileResult:
    warnings = []
    blocks: dict[str, _ModelBlock] = {}

    for entity in entities:
        block = _ModelBlock(capitalize(entity.name))
        for attribute in entity.attributes:
            # the identity field is fixed
            if attribute.name == "id":
                log.debug("Ignoring user-defined id attribute on %s", block.name)
                continue
            block.add(field_line(attribute))
        blocks[entity.id] = block

    for relation in relations:
        source = blocks.get(relation.source_entity_id)
        target = blocks.get(relation.target_entity_id)
        if source is None or target is None:
            message = (
                f"Dropping relation {relation.id}: "
                f"{relation.source_entity_id} -> {relation.target_entity_id} has a missing endpoint"
            )
            log.warning(message)
            warnings.append(CompileWarning("unresolved_reference", relation.id, message))
            continue
        warning = expand_relation(relation, source, target)
        if warning:
            warnings.append(warning)

    parts = [render_header(settings)]
    parts.extend(block.render() + "\n" for block in blocks.values())
    return CompileResult(schema="\n".join(parts), warnings=warnings)


def compile_schema_with_warnings(
    entities: Union[Graph, Mapping[str, Any], Sequence[Entity]],
    relations: Optional[Sequence[Relation]] = None,
    settings: Optional[Settings] = None,
) -> CompileResult:
    """Compile a graph to schema text, also returning the anomalies that were skipped"""
    if relations is None:
        graph = coerce_graph(entities)
    else:
        graph = coerce_graph({"entities": list(entities), "relations": list(relations)})

    try:
        return _build(graph.entities, graph.relations, settings or DEFAULT_SETTINGS)
    except Exception as e:
        raise CompileError(f"Failed to compile schema: {e}") from e


def compile_schema(
    entities: Union[Graph, Mapping[str, Any], Sequence[Entity]],
    relations: Optional[Sequence[Relation]] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Compile canvas entities and relations into Prisma schema text"""
    return compile_schema_with_warnings(entities, relations, settings).schema


def compile_document(
    document: Union[SchemaDocument, Mapping[str, Any]],
    settings: Optional[Settings] = None,
) -> CompileResult:
    """Compile a stored schema by reading it back onto a graph first"""
    return compile_schema_with_warnings(deserialize_schema(document), settings=settings)
