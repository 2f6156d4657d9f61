from dataclasses import dataclass
from typing import Literal, Optional


class SchemaError(Exception):
    """Base class for schema translation failures"""


class MalformedInputError(SchemaError):
    """Raised when a graph or storage payload does not fit the data model"""


class CompileError(SchemaError):
    """Raised when DSL text cannot be assembled"""


class ParseError(SchemaError):
    """Raised when DSL text yields no models"""


class GenerationError(SchemaError):
    """Raised when the text generation provider fails"""


# Recoverable anomaly found while compiling; the relation is skipped or commented
@dataclass(frozen=True)
class CompileWarning:
    kind: Literal["unresolved_reference", "unknown_relation_type"]
    relation_id: Optional[str]
    message: str

    def to_dict(self) -> dict:
        return {"kind": self.kind, "relationId": self.relation_id, "message": self.message}
