import pytest

from models import Attribute, Constraint, Entity, Graph, Relation


@pytest.fixture(name="user_task_graph")
def create_user_task_graph() -> Graph:
    """User 1-m Task, the canvas placeholder schema."""
    return Graph(
        entities=[
            Entity(
                id="node-user",
                name="User",
                attributes=[
                    Attribute(name="email", type="String", constraint=Constraint(required=True, unique=True)),
                    Attribute(name="password", type="String", constraint=Constraint(required=True)),
                ],
            ),
            Entity(
                id="node-task",
                name="Task",
                attributes=[
                    Attribute(name="title", type="String", constraint=Constraint(required=True)),
                    Attribute(name="sequence", type="Int"),
                ],
            ),
        ],
        relations=[
            Relation(id="edge-1", source_entity_id="node-user", target_entity_id="node-task", relation_type="1-m"),
        ],
    )


@pytest.fixture(name="storage_document")
def create_storage_document() -> dict:
    """A persisted document in its camelCase wire shape."""
    return {
        "models": [
            {
                "nodeId": "node-user",
                "name": "User",
                "position": {"x": 10, "y": 20},
                "fields": [
                    {
                        "name": "email",
                        "type": "String",
                        "isOptional": False,
                        "isList": False,
                        "constraints": [{"type": "unique"}],
                        "defaultValue": None,
                    },
                ],
            },
            {
                "nodeId": "node-task",
                "name": "Task",
                "position": {"x": 300, "y": 20},
                "fields": [],
            },
        ],
        "relations": [
            {
                "edgeId": "edge-1",
                "sourceModelId": "node-user",
                "targetModelId": "node-task",
                "relationType": "1-m",
            },
        ],
    }
