import logging
import re
from typing import Any, Optional
from google import genai
from google.genai import types
from groq import Groq

from config import Settings, load_settings
from errors import GenerationError

log = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a Prisma ORM expert and database architect.

STRICT RULES (must follow all):
1. Output ONLY a valid Prisma schema.
2. Do NOT include explanations, markdown, comments, or extra text.
3. Do NOT wrap output in ``` or any formatting.
4. Use Prisma version 5+ syntax.
5. Define generator client and datasource blocks.
6. Generator client provider must be "prisma-client-js".
7. Use database provider "mongodb" and url env("DATABASE_URL").
8. Every model MUST define the id field exactly as: id String @id @default(auto()) @map("_id") @db.ObjectId
9. All relations MUST use explicit foreign key fields.
10. For MongoDB:
    - foreign key fields MUST be defined as String @db.ObjectId
    - relations MUST use @relation(fields: [foreignKeyField])
    - relations MUST NOT use references
11. Use best practices:
    - @unique where appropriate
    - Proper one-to-one and one-to-many relations
12. Ensure schema passes prisma validate for provider mongodb.

OUTPUT FORMAT:
- Plain text Prisma schema only.
- No leading or trailing text."""

CODE_FENCE = re.compile(r"^```[\w-]*\s*\n(.*?)\n?```$", re.DOTALL)


def clean_output(text: Optional[str]) -> str:
    """Strip whitespace and a surrounding Markdown fence from model output"""
    text = (text or "").strip()
    m = CODE_FENCE.match(text)
    if m:
        text = m.group(1).strip()
    return text


def _groq_complete(prompt: str, settings: Settings, client: Any = None) -> Optional[str]:
    if client is None:
        client = Groq(api_key=settings.groq_api_key)

    response = client.chat.completions.create(
        model=settings.groq_model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
    )
    return response.choices[0].message.content


def _gemini_complete(prompt: str, settings: Settings, client: Any = None) -> Optional[str]:
    if client is None:
        client = genai.Client(api_key=settings.gemini_api_key)

    response = client.models.generate_content(
        model=settings.gemini_model,
        contents=prompt,
        config=types.GenerateContentConfig(system_instruction=SYSTEM_PROMPT),
    )
    return response.text


PROVIDERS = {
    "groq": _groq_complete,
    "gemini": _gemini_complete,
}


def generate_dsl(prompt: str, settings: Optional[Settings] = None, client: Any = None) -> str:
    """Ask the configured language model for a Prisma schema matching the prompt"""
    if not prompt or not prompt.strip():
        raise GenerationError("prompt is empty")

    settings = settings or load_settings()
    complete = PROVIDERS.get(settings.llm_provider.lower())
    if complete is None:
        raise GenerationError(f"Unknown LLM provider: {settings.llm_provider}")

    try:
        raw = complete(prompt.strip(), settings, client)
    except Exception as e:
        log.error("%s request failed: %s", settings.llm_provider, e)
        raise GenerationError(f"{settings.llm_provider} API error: {e}") from e

    schema = clean_output(raw)
    if not schema:
        raise GenerationError("provider returned an empty schema")
    return schema
