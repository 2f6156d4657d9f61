import logging
from typing import Any
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from config import load_settings
from generator import generate_dsl
from handlers import (
    handle_generate_schema,
    handle_visualize_schema,
    handle_serialize_schema,
    handle_deserialize_schema,
    handle_validate_schema,
    handle_generate_with_ai,
)

settings = load_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

app = FastAPI(title="Schema Canvas API")

# CORS for the canvas front end
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# failure kinds reported by the handlers
STATUS_CODES = {
    "malformed": 400,
    "validation": 400,
    "parse": 400,
    "compile": 500,
    "generation": 502,
}


class GraphRequest(BaseModel):
    entities: list[dict[str, Any]] = []
    relations: list[dict[str, Any]] = []


class StorageRequest(BaseModel):
    models: Any = None
    relations: Any = None


class VisualizeRequest(BaseModel):
    schema_text: str = Field(alias="schema")


class PromptRequest(BaseModel):
    prompt: str
    visualize: bool = False


def _unwrap(result: dict) -> dict:
    if result.get("success"):
        return result
    status = STATUS_CODES.get(result.get("kind"), 400)
    detail = {k: v for k, v in result.items() if k != "success"}
    raise HTTPException(status_code=status, detail=detail)


@app.post("/generate-schema")
async def generate_schema(request: GraphRequest):
    return _unwrap(handle_generate_schema(request.model_dump()))


@app.post("/visualize-schema")
async def visualize_schema(request: VisualizeRequest):
    return _unwrap(handle_visualize_schema({"schema": request.schema_text}))


@app.post("/schemas/serialize")
async def serialize_schema(request: GraphRequest):
    return _unwrap(handle_serialize_schema(request.model_dump()))


@app.post("/schemas/deserialize")
async def deserialize_schema(request: StorageRequest):
    return _unwrap(handle_deserialize_schema(request.model_dump()))


@app.post("/schemas/validate")
async def validate_schema(request: StorageRequest):
    result = handle_validate_schema(request.model_dump())
    if not result["valid"]:
        raise HTTPException(status_code=400, detail={k: v for k, v in result.items() if k != "success"})
    return result


@app.post("/ai/schema")
async def ai_schema(request: PromptRequest):
    result = handle_generate_with_ai(
        {"prompt": request.prompt, "visualize": request.visualize},
        generate=lambda prompt: generate_dsl(prompt, settings),
    )
    return _unwrap(result)


@app.get("/health")
async def health():
    return {"status": "ok", "provider": settings.llm_provider}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
