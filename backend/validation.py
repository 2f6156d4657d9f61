import logging
from dataclasses import dataclass, field
from typing import Any, Optional
from pydantic import BaseModel

log = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    ok: bool = True
    category: Optional[str] = None  # "document", "models" or "relations"
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"valid": self.ok, "category": self.category, "errors": list(self.errors)}


def _plain(item: Any) -> Any:
    # pydantic objects are checked in their persisted (camelCase) shape
    if isinstance(item, BaseModel):
        return item.model_dump(by_alias=True)
    return item


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def _is_number(value: Any) -> bool:
    # bool is an int subclass but not a coordinate
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _model_problem(model: Any) -> Optional[str]:
    if not isinstance(model, dict):
        return "not an object"
    if not _non_empty_str(model.get("nodeId")):
        return "missing nodeId"
    if not _non_empty_str(model.get("name")):
        return "missing name"
    position = model.get("position")
    if not isinstance(position, dict) or not _is_number(position.get("x")) or not _is_number(position.get("y")):
        return "position must have numeric x and y"
    if not _is_sequence(model.get("fields")):
        return "fields must be a list"
    return None


def _relation_problem(relation: Any, node_ids: set) -> Optional[str]:
    if not isinstance(relation, dict):
        return "not an object"
    if not _non_empty_str(relation.get("edgeId")):
        return "missing edgeId"
    if not _non_empty_str(relation.get("relationType")):
        return "missing relationType"
    source = relation.get("sourceModelId")
    target = relation.get("targetModelId")
    if not _non_empty_str(source) or source not in node_ids:
        return f"sourceModelId {source!r} does not match a model"
    if not _non_empty_str(target) or target not in node_ids:
        return f"targetModelId {target!r} does not match a model"
    return None


def check_schema(models: Any, relations: Any) -> ValidationReport:
    """Check a storage-form schema and report the first failing category"""
    report = ValidationReport()

    if not _is_sequence(models) or not _is_sequence(relations):
        report.ok = False
        report.category = "document"
        report.errors.append("models and relations must both be lists")
        log.error("Invalid schema document: models=%s relations=%s", type(models).__name__, type(relations).__name__)
        return report

    models = [_plain(m) for m in models]
    relations = [_plain(r) for r in relations]

    for index, model in enumerate(models):
        problem = _model_problem(model)
        if problem:
            report.errors.append(f"model {index}: {problem}")
            log.error("Invalid model at index %d: %s (%r)", index, problem, model)

    # model failures short-circuit before relation checks
    if report.errors:
        report.ok = False
        report.category = "models"
        return report

    node_ids = {m["nodeId"] for m in models}
    for index, relation in enumerate(relations):
        problem = _relation_problem(relation, node_ids)
        if problem:
            report.errors.append(f"relation {index}: {problem}")
            log.error("Invalid relation at index %d: %s (%r)", index, problem, relation)

    if report.errors:
        report.ok = False
        report.category = "relations"
    return report


def validate(models: Any, relations: Any) -> bool:
    """Return True if the storage-form schema may be persisted or compiled"""
    return check_schema(models, relations).ok


def validate_document(data: Any) -> ValidationReport:
    """Check a {models, relations} document as received from a caller"""
    data = _plain(data)
    if not isinstance(data, dict):
        log.error("Invalid schema document: not an object")
        return ValidationReport(ok=False, category="document", errors=["document must be an object"])
    return check_schema(data.get("models"), data.get("relations"))
