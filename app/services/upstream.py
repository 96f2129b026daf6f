"""Upstream generation capability (Gemini + File Search) and response normalization.

All guessing about which field of a generation response is populated lives in
`normalize_response` and `grounding_metadata`. Both accept the google-genai
response objects as well as plain dicts (snake_case or camelCase keys).
"""

from typing import Any, Literal, Protocol

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel

from app.core.config import Settings
from app.core.logging import get_logger

log = get_logger(__name__)

BLOCKED_FINISH_REASONS = frozenset({
    "RECITATION",
    "SAFETY",
    "BLOCKLIST",
    "PROHIBITED_CONTENT",
    "SPII",
    "IMAGE_SAFETY",
})


class PrimaryText(BaseModel):
    kind: Literal["primary_text"] = "primary_text"
    text: str


class CandidateParts(BaseModel):
    kind: Literal["candidate_parts"] = "candidate_parts"
    parts: list[str]

    @property
    def text(self) -> str:
        return "".join(self.parts)


class Blocked(BaseModel):
    kind: Literal["blocked"] = "blocked"
    reason: str


class Empty(BaseModel):
    kind: Literal["empty"] = "empty"
    finish_reason: str | None = None


GenerationOutcome = PrimaryText | CandidateParts | Blocked | Empty


def field(obj: Any, *names: str) -> Any:
    """First non-None attribute/key among `names`."""
    if obj is None:
        return None
    for name in names:
        if isinstance(obj, dict):
            value = obj.get(name)
        else:
            try:
                value = getattr(obj, name, None)
            except (AttributeError, ValueError):
                value = None
        if value is not None:
            return value
    return None


def _reason_name(reason: Any) -> str | None:
    if reason is None:
        return None
    name = str(getattr(reason, "value", reason)).upper()
    return name.rsplit(".", 1)[-1]


def first_candidate(response: Any) -> Any:
    candidates = field(response, "candidates")
    if not candidates:
        return None
    try:
        return candidates[0]
    except (IndexError, KeyError, TypeError):
        return None


def finish_reason(response: Any) -> str | None:
    return _reason_name(field(first_candidate(response), "finish_reason", "finishReason"))


def _part_texts(candidate: Any) -> list[str]:
    parts = field(field(candidate, "content"), "parts") or []
    texts = []
    for part in parts:
        text = field(part, "text")
        if isinstance(text, str):
            texts.append(text)
    return texts


def normalize_response(response: Any) -> GenerationOutcome:
    """Map a raw generation response to exactly one outcome variant."""
    primary = field(response, "text")
    if isinstance(primary, str) and primary.strip():
        return PrimaryText(text=primary)

    parts = _part_texts(first_candidate(response))
    if "".join(parts).strip():
        return CandidateParts(parts=parts)

    reason = finish_reason(response)
    if reason in BLOCKED_FINISH_REASONS:
        return Blocked(reason=reason)
    block_reason = _reason_name(field(field(response, "prompt_feedback", "promptFeedback"), "block_reason", "blockReason"))
    if block_reason and block_reason != "BLOCKED_REASON_UNSPECIFIED":
        return Blocked(reason=block_reason)
    return Empty(finish_reason=reason)


def grounding_metadata(response: Any) -> Any:
    """Grounding metadata from the first candidate, else from the response itself."""
    metadata = field(first_candidate(response), "grounding_metadata", "groundingMetadata")
    if metadata is None:
        metadata = field(response, "grounding_metadata", "groundingMetadata")
    return metadata


class GenerationBackend(Protocol):
    async def generate(self, prompt: str, search_scope: str | None) -> Any:
        ...


class GeminiBackend:
    """Gemini generate_content with the File Search tool bound to one store."""

    def __init__(self, client: genai.Client, model: str):
        self.client = client
        self.model = model

    async def generate(self, prompt: str, search_scope: str | None) -> types.GenerateContentResponse:
        config = None
        if search_scope:
            config = types.GenerateContentConfig(
                tools=[types.Tool(file_search=types.FileSearch(file_search_store_names=[search_scope]))]
            )
        return await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )


def make_client(settings: Settings) -> genai.Client:
    return genai.Client(api_key=settings.gemini_api_key)


async def resolve_search_scope(client: genai.Client, settings: Settings) -> str:
    """Reuse the configured File Search store if it exists upstream, else create one."""
    name = settings.file_search_store_name
    if name:
        try:
            await client.aio.file_search_stores.get(name=name)
            log.info("file_search_store_ready", store=name)
            return name
        except genai_errors.APIError as e:
            log.warning("file_search_store_missing", store=name, error=str(e))
    store = await client.aio.file_search_stores.create(
        config={"display_name": settings.file_search_store_display_name}
    )
    log.warning(
        "file_search_store_created",
        store=store.name,
        hint="set FILE_SEARCH_STORE_NAME to reuse this store",
    )
    return store.name
