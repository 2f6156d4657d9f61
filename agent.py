import logging

from config import load_settings
from dsl_parser import parse_schema
from errors import GenerationError, ParseError
from generator import generate_dsl
from models import Graph

settings = load_settings()
logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


def describe_graph(graph: Graph) -> str:
    """Summarise a recovered graph for the console"""
    lines = ["📦 Models:"]
    for entity in graph.entities:
        attrs = ", ".join(a.name for a in entity.attributes) or "(no fields)"
        lines.append(f"  • {entity.name}: {attrs}")
    if graph.relations:
        lines.append("")
        lines.append("🔗 Relations:")
        for rel in graph.relations:
            lines.append(f"  • {rel.source_entity_id} → {rel.target_entity_id} ({rel.relation_type})")
    return "\n".join(lines)


def visualize(schema_text: str) -> str:
    try:
        return describe_graph(parse_schema(schema_text))
    except ParseError as e:
        return f"❌ Could not read schema: {e}"


def handle_input(user_input: str) -> str:
    """Process one line of input and return the text to show"""
    if user_input.startswith("file "):
        path = user_input[5:].strip()
        try:
            with open(path, encoding="utf-8") as f:
                return visualize(f.read())
        except OSError as e:
            return f"❌ Could not open {path}: {e}"

    try:
        schema_text = generate_dsl(user_input, settings)
    except GenerationError as e:
        return f"❌ {e}"
    return schema_text + "\n\n" + visualize(schema_text)


if __name__ == "__main__":
    print("=" * 50)
    print("Schema Canvas - Prisma schema assistant")
    print("Describe a schema, 'file <path>' to read one, 'quit' to exit")
    print("=" * 50)
    print()

    while True:
        user_input = input("You: ").strip()

        if user_input.lower() == "quit":
            print("Goodbye!")
            break

        if not user_input:
            continue

        print(f"\n{handle_input(user_input)}\n")
