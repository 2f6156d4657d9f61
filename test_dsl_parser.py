"""Tests for the schema text -> graph reverse compiler."""

import pytest

from compiler import compile_schema
from dsl_parser import (
    CELL_HEIGHT,
    CELL_WIDTH,
    grid_positions,
    infer_relations,
    parse_field,
    parse_models,
    parse_schema,
    strip_comments,
)
from errors import ParseError
from models import Attribute, Constraint, Entity, Graph, Relation

HAND_WRITTEN = """
// generated elsewhere
generator client {
  provider = "prisma-client-js"
}

/* Blog
   models */
model Author {
  id      String   @id @default(auto()) @map("_id") @db.ObjectId
  name    String
  bio     String?  // optional
  posts   Post[]
  tags    String[] @default([])
  @@map("authors")
}

model   Post{
    id        String   @id @default(auto()) @map("_id") @db.ObjectId
    title     String   @unique
    published Boolean  @default(false)
    views     Int      @default(0)
    status    Status   @default(DRAFT)
    authorId  String   @db.ObjectId
    author    Author   @relation(fields: [authorId])
    updated   DateTime @updatedAt
    = not a field
}
"""


def test_strip_comments():
    text = "model A { /* x */\n  a String // note\n}"
    assert strip_comments(text) == "model A { \n  a String \n}"


def test_parse_field_shapes():
    field = parse_field("tags String[]")
    assert (field.name, field.type, field.is_list, field.is_optional) == ("tags", "String", True, False)
    field = parse_field("bio String? @default(\"x\")")
    assert (field.type, field.is_optional, field.decorators) == ("String", True, '@default("x")')
    assert parse_field("= not a field") is None
    assert parse_field("lonely") is None


def test_parse_models_keeps_order():
    models = parse_models(HAND_WRITTEN)
    assert [m.name for m in models] == ["Author", "Post"]
    assert [f.name for f in models[0].fields] == ["id", "name", "bio", "posts", "tags"]
    assert [f.name for f in models[1].fields] == [
        "id", "title", "published", "views", "status", "authorId", "author", "updated",
    ]


def test_parse_schema_attributes():
    graph = parse_schema(HAND_WRITTEN)
    author, post = graph.entities
    assert author.id == "Author"
    assert [a.name for a in author.attributes] == ["name", "bio", "tags"]
    assert author.attributes[0].constraint == Constraint(required=True)
    assert author.attributes[1].constraint == Constraint()
    assert author.attributes[2].constraint == Constraint(list=True, default_value="[]")

    # Status is not an attribute type, author is a relation field
    by_name = {a.name: a for a in post.attributes}
    assert list(by_name) == ["title", "published", "views", "authorId", "updated"]
    assert by_name["title"].constraint.unique
    assert by_name["published"].constraint.default_value == "false"
    assert by_name["views"].constraint.default_value == "0"
    assert by_name["authorId"].constraint.is_id
    assert by_name["updated"].constraint.updated_at


def test_single_edge_per_model_pair():
    graph = parse_schema(HAND_WRITTEN)
    assert graph.relations == [
        Relation(id="Author-Post", source_entity_id="Author", target_entity_id="Post", relation_type="1-m"),
    ]


def test_scalar_reference_infers_one_to_one():
    graph = parse_schema("model A {\n  b B?\n}\nmodel B {\n  a A\n}")
    assert [(r.source_entity_id, r.target_entity_id, r.relation_type) for r in graph.relations] == [("A", "B", "1-1")]


def test_no_models_found():
    with pytest.raises(ParseError, match="no models found"):
        parse_schema('generator client {\n  provider = "prisma-client-js"\n}')
    with pytest.raises(ParseError):
        parse_schema("")


def test_grid_layout():
    positions = grid_positions(5)
    assert [(p.x, p.y) for p in positions] == [
        (0, 0), (CELL_WIDTH, 0), (CELL_WIDTH * 2, 0),
        (0, CELL_HEIGHT), (CELL_WIDTH, CELL_HEIGHT),
    ]
    assert grid_positions(0) == []
    assert len({(p.x, p.y) for p in grid_positions(10)}) == 10


def test_round_trip_user_task():
    entities = [
        Entity(id="u", name="User", attributes=[Attribute(name="email", type="String", constraint=Constraint(unique=True))]),
        Entity(id="t", name="Task", attributes=[Attribute(name="title", type="String")]),
    ]
    relations = [Relation(id="e", source_entity_id="u", target_entity_id="t", relation_type="1-m")]

    graph = parse_schema(compile_schema(entities, relations))

    assert [e.name for e in graph.entities] == ["User", "Task"]
    assert len(graph.relations) == 1
    relation = graph.relations[0]
    assert (relation.source_entity_id, relation.target_entity_id, relation.relation_type) == ("User", "Task", "1-m")


def test_recompile_is_stable(user_task_graph):
    first = compile_schema(user_task_graph)
    second = compile_schema(parse_schema(first))
    assert second == first


def test_infer_relations_ignores_unknown_types():
    models = parse_models("model A {\n  x Thing\n}")
    assert infer_relations(models) == []
    assert isinstance(parse_schema("model A {\n  x Thing\n}"), Graph)


def test_round_trip_keeps_braces_inside_defaults():
    entities = [
        Entity(id="u", name="User", attributes=[
            Attribute(name="meta", type="Json", constraint=Constraint(default_value="{}")),
            Attribute(name="email", type="String", constraint=Constraint(unique=True)),
        ]),
        Entity(id="t", name="Task"),
    ]
    relations = [Relation(id="e", source_entity_id="u", target_entity_id="t", relation_type="1-m")]

    schema = compile_schema(entities, relations)
    assert '  meta Json? @default("{}")' in schema

    graph = parse_schema(schema)
    user = graph.entities[0]
    assert [a.name for a in user.attributes] == ["meta", "email"]
    assert user.attributes[0].constraint.default_value == "{}"
    assert [(r.source_entity_id, r.target_entity_id, r.relation_type) for r in graph.relations] == [
        ("User", "Task", "1-m"),
    ]


def test_block_edges():
    models = parse_models("model A { }\nmodel B {\n  x String\n")
    assert [(m.name, [f.name for f in m.fields]) for m in models] == [("A", []), ("B", ["x"])]
