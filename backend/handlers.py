import logging
from typing import Callable

from compiler import compile_schema_with_warnings
from dsl_parser import parse_schema
from errors import CompileError, GenerationError, MalformedInputError, ParseError
from generator import generate_dsl
from serializer import coerce_document, deserialize_schema, serialize_graph
from validation import check_schema, validate_document

log = logging.getLogger(__name__)


def _graph_result(graph) -> dict:
    data = graph.model_dump(by_alias=True)
    return {"success": True, "entities": data["entities"], "relations": data["relations"]}


def handle_generate_schema(args: dict) -> dict:
    """Compile the canvas graph into schema text"""
    try:
        result = compile_schema_with_warnings(args)
    except MalformedInputError as e:
        return {"success": False, "error": f"Malformed graph: {e}", "kind": "malformed"}
    except CompileError as e:
        log.error("Schema compilation failed: %s", e)
        return {"success": False, "error": str(e), "kind": "compile"}

    return {
        "success": True,
        "schema": result.schema,
        "warnings": [w.to_dict() for w in result.warnings],
    }


def handle_visualize_schema(args: dict) -> dict:
    """Turn pasted schema text back into a graph"""
    text = args.get("schema")
    if not isinstance(text, str):
        return {"success": False, "error": "schema must be a string", "kind": "malformed"}
    try:
        graph = parse_schema(text)
    except ParseError as e:
        return {"success": False, "error": str(e), "kind": "parse"}
    return _graph_result(graph)


def handle_serialize_schema(args: dict) -> dict:
    """Convert a graph to the storage form and check it before it is persisted"""
    try:
        document = serialize_graph(args)
    except MalformedInputError as e:
        return {"success": False, "error": f"Malformed graph: {e}", "kind": "malformed"}

    report = check_schema(document.models, document.relations)
    if not report.ok:
        return {
            "success": False,
            "error": "Invalid schema structure",
            "kind": "validation",
            "category": report.category,
            "errors": report.errors,
        }

    data = document.model_dump(by_alias=True)
    log.info("Serialized schema: %d models, %d relations", len(document.models), len(document.relations))
    return {"success": True, "models": data["models"], "relations": data["relations"]}


def handle_deserialize_schema(args: dict) -> dict:
    """Convert a stored schema back into a graph"""
    try:
        graph = deserialize_schema(coerce_document(args))
    except MalformedInputError as e:
        return {"success": False, "error": f"Malformed storage document: {e}", "kind": "malformed"}
    return _graph_result(graph)


def handle_validate_schema(args: dict) -> dict:
    """Report whether a storage-form document may be persisted"""
    report = validate_document(args)
    return {"success": True, **report.to_dict()}


def handle_generate_with_ai(args: dict, generate: Callable[[str], str] = generate_dsl) -> dict:
    """Ask the language model for schema text, optionally rebuilding the graph from it"""
    prompt = args.get("prompt") or ""
    try:
        schema = generate(prompt)
    except GenerationError as e:
        return {"success": False, "error": str(e), "kind": "generation"}

    result = {"success": True, "schema": schema}
    if args.get("visualize"):
        try:
            graph = parse_schema(schema)
        except ParseError as e:
            return {"success": False, "error": str(e), "kind": "generation", "schema": schema}
        data = graph.model_dump(by_alias=True)
        result["entities"] = data["entities"]
        result["relations"] = data["relations"]
    return result
