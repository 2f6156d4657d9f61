"""Mapping between the canvas graph and the persisted storage form.

serialize_graph() is lossless. deserialize_schema() is deliberately lossy:
each storage field collapses to a single constraint tag, picked in the
priority order id > unique > updatedAt > default, then list, then
required/optional. A field that is both unique and required comes back as
unique only. The list flag and the stored default value always survive.
Keep that order stable so repeated round trips agree.
"""
import logging
from typing import Any, Mapping, Optional, Sequence, Union
from pydantic import ValidationError

from errors import MalformedInputError
from models import (
    Attribute,
    Constraint,
    ConstraintKind,
    DefaultConstraint,
    Entity,
    Graph,
    IdConstraint,
    Position,
    Relation,
    SchemaDocument,
    StorageField,
    StorageModel,
    StorageRelation,
    UniqueConstraint,
    UpdatedAtConstraint,
)

log = logging.getLogger(__name__)

CONSTRAINT_PRIORITY = ["id", "unique", "updatedAt", "default"]


def coerce_graph(data: Union[Graph, Mapping[str, Any]]) -> Graph:
    """Turn a raw {entities, relations} payload into a Graph"""
    if isinstance(data, Graph):
        return data
    if not isinstance(data, Mapping):
        raise MalformedInputError("graph must be an object with entities and relations")
    if not isinstance(data.get("entities", []), list) or not isinstance(data.get("relations", []), list):
        raise MalformedInputError("entities and relations must be lists")
    try:
        return Graph.model_validate(data)
    except ValidationError as e:
        raise MalformedInputError(str(e)) from e


def coerce_document(data: Union[SchemaDocument, Mapping[str, Any]]) -> SchemaDocument:
    """Turn a raw {models, relations} payload into a SchemaDocument"""
    if isinstance(data, SchemaDocument):
        return data
    if not isinstance(data, Mapping):
        raise MalformedInputError("storage document must be an object with models and relations")
    if not isinstance(data.get("models", []), list) or not isinstance(data.get("relations", []), list):
        raise MalformedInputError("models and relations must be lists")
    try:
        return SchemaDocument.model_validate(data)
    except ValidationError as e:
        raise MalformedInputError(str(e)) from e


def build_constraints(constraint: Constraint) -> list:
    constraints = []
    if constraint.is_id:
        constraints.append(IdConstraint())
    if constraint.unique:
        constraints.append(UniqueConstraint())
    if constraint.updated_at:
        constraints.append(UpdatedAtConstraint())
    if constraint.default_value:
        constraints.append(DefaultConstraint(value=constraint.default_value))
    return constraints


def attribute_to_field(attribute: Attribute) -> StorageField:
    constraint = attribute.constraint
    return StorageField(
        name=attribute.name,
        type=attribute.type or "String",
        is_optional=not constraint.required,
        is_list=constraint.list,
        constraints=build_constraints(constraint),
        default_value=constraint.default_value,
    )


def entity_to_model(entity: Entity) -> StorageModel:
    return StorageModel(
        node_id=entity.id,
        name=entity.name or "Unnamed",
        position=Position(x=entity.position.x, y=entity.position.y),
        fields=[attribute_to_field(a) for a in entity.attributes],
    )


def relation_to_storage(relation: Relation) -> StorageRelation:
    # ids stay entity ids here; resolve_relations() swaps in storage ids
    return StorageRelation(
        edge_id=relation.id,
        source_model_id=relation.source_entity_id,
        target_model_id=relation.target_entity_id,
        relation_type=relation.relation_type or "1-m",
    )


def serialize_graph(
    entities: Union[Graph, Mapping[str, Any], Sequence[Entity]],
    relations: Optional[Sequence[Relation]] = None,
) -> SchemaDocument:
    """Convert canvas entities and relations into the storage form"""
    if relations is None:
        graph = coerce_graph(entities)
    else:
        graph = coerce_graph({"entities": list(entities), "relations": list(relations)})

    return SchemaDocument(
        models=[entity_to_model(e) for e in graph.entities],
        relations=[relation_to_storage(r) for r in graph.relations],
    )


def constraint_kind(field: StorageField) -> tuple[ConstraintKind, Optional[str]]:
    """Collapse a storage field to one constraint tag and its value"""
    present = {c.type: c for c in field.constraints}
    for kind in CONSTRAINT_PRIORITY:
        if kind in present:
            value = present[kind].value if kind == "default" else None
            return kind, value
    if field.is_list:
        return "list", None
    if not field.is_optional:
        return "required", None
    return "optional", None


def field_to_attribute(field: StorageField) -> Attribute:
    kind, value = constraint_kind(field)
    constraint = Constraint.from_kind(kind, value).model_copy(update={
        "list": field.is_list,
        "default_value": value if value is not None else field.default_value,
    })
    return Attribute(
        name=field.name,
        type=field.type or "String",
        constraint=constraint,
    )


def model_to_entity(model: StorageModel) -> Entity:
    return Entity(
        id=model.node_id,
        name=model.name or "Unnamed",
        position=Position(x=model.position.x, y=model.position.y),
        attributes=[field_to_attribute(f) for f in model.fields],
    )


def deserialize_schema(document: Union[SchemaDocument, Mapping[str, Any]]) -> Graph:
    """Convert a storage-form document back into canvas entities and relations"""
    document = coerce_document(document)
    try:
        entities = [model_to_entity(m) for m in document.models]
    except ValidationError as e:
        # a persisted field type outside the attribute enumeration
        raise MalformedInputError(str(e)) from e
    relations = [
        Relation(
            id=r.edge_id,
            source_entity_id=r.source_model_id,
            target_entity_id=r.target_model_id,
            relation_type=r.relation_type or "1-m",
        )
        for r in document.relations
    ]
    return Graph(entities=entities, relations=relations)


def resolve_relations(
    relations: Sequence[StorageRelation],
    node_to_model_id: Mapping[str, str],
) -> list[StorageRelation]:
    """Swap entity ids for storage-assigned model ids, dropping unresolvable relations"""
    resolved = []
    for relation in relations:
        source = node_to_model_id.get(relation.source_model_id)
        target = node_to_model_id.get(relation.target_model_id)
        if not source or not target:
            log.warning(
                "Dropping relation %s: missing model id for %s -> %s",
                relation.edge_id, relation.source_model_id, relation.target_model_id,
            )
            continue
        resolved.append(relation.model_copy(update={"source_model_id": source, "target_model_id": target}))
    return resolved


def restore_relations(
    relations: Sequence[StorageRelation],
    model_id_to_node_id: Mapping[str, str],
) -> list[StorageRelation]:
    """Inverse of resolve_relations(), used when a saved schema is loaded"""
    restored = []
    for relation in relations:
        source = model_id_to_node_id.get(relation.source_model_id)
        target = model_id_to_node_id.get(relation.target_model_id)
        if not source or not target:
            log.warning(
                "Skipping relation %s with missing models: %s -> %s",
                relation.edge_id, relation.source_model_id, relation.target_model_id,
            )
            continue
        restored.append(relation.model_copy(update={"source_model_id": source, "target_model_id": target}))
    return restored
