from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AttributeType = Literal[
    "String", "Boolean", "Int", "BigInt", "Float", "Decimal", "Json", "Bytes", "DateTime"
]
ATTRIBUTE_TYPES = ["String", "Boolean", "Int", "BigInt", "Float", "Decimal", "Json", "Bytes", "DateTime"]
RELATION_TYPES = ["1-1", "1-m", "m-1", "m-n"]

# Single tag a storage field collapses to when read back onto the canvas
ConstraintKind = Literal["id", "unique", "updatedAt", "default", "list", "required", "optional"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(CamelModel):
    x: float = 0
    y: float = 0


# Flags attached to one attribute
class Constraint(CamelModel):
    required: bool = False
    unique: bool = False
    list: bool = False
    updated_at: bool = False
    is_id: bool = False
    default_value: Optional[str] = None

    @property
    def optional(self) -> bool:
        # a list is never marked optional
        return not self.list and not self.required

    @classmethod
    def from_kind(cls, kind: ConstraintKind, value: Optional[str] = None) -> "Constraint":
        """Build the flag bag for a single collapsed constraint tag"""
        if kind == "id":
            return cls(is_id=True)
        if kind == "unique":
            return cls(unique=True)
        if kind == "updatedAt":
            return cls(updated_at=True)
        if kind == "default":
            return cls(default_value=value)
        if kind == "list":
            return cls(list=True)
        if kind == "required":
            return cls(required=True)
        return cls()


# A single field of an entity
class Attribute(CamelModel):
    name: str = ""
    type: AttributeType = "String"
    constraint: Constraint = Field(default_factory=Constraint)


# A node on the canvas
class Entity(CamelModel):
    id: str
    name: str = ""
    position: Position = Field(default_factory=Position)
    attributes: list[Attribute] = Field(default_factory=list)


# An edge on the canvas
class Relation(CamelModel):
    id: str
    source_entity_id: str
    target_entity_id: str
    relation_type: str = "1-m"


class Graph(CamelModel):
    entities: list[Entity] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)


# A single constraint tag on a stored field
class IdConstraint(CamelModel):
    type: Literal["id"] = "id"


class UniqueConstraint(CamelModel):
    type: Literal["unique"] = "unique"


class UpdatedAtConstraint(CamelModel):
    type: Literal["updatedAt"] = "updatedAt"


class DefaultConstraint(CamelModel):
    type: Literal["default"] = "default"
    value: str


StorageConstraint = Annotated[
    Union[IdConstraint, UniqueConstraint, UpdatedAtConstraint, DefaultConstraint],
    Field(discriminator="type"),
]


# A single persisted field
class StorageField(CamelModel):
    name: str
    type: str = "String"
    is_optional: bool = True
    is_list: bool = False
    constraints: list[StorageConstraint] = Field(default_factory=list)
    default_value: Optional[str] = None


# A persisted model with its canvas position
class StorageModel(CamelModel):
    node_id: str
    name: str
    position: Position = Field(default_factory=Position)
    fields: list[StorageField] = Field(default_factory=list)


# source/target hold entity ids until resolved to storage ids at save time
class StorageRelation(CamelModel):
    edge_id: str
    source_model_id: str
    target_model_id: str
    relation_type: str = "1-m"


class SchemaDocument(CamelModel):
    models: list[StorageModel] = Field(default_factory=list)
    relations: list[StorageRelation] = Field(default_factory=list)
