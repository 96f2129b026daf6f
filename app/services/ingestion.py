"""Index uploaded documents into the File Search store (admin only, outside the chat path)."""

import asyncio
import io

from google import genai
from google.genai import errors as genai_errors

from app.core.config import get_settings
from app.core.exceptions import UpstreamError, summarize_exception
from app.core.logging import get_logger

log = get_logger(__name__)

DEFAULT_MIME_TYPE = "application/pdf"


async def wait_for_indexing(client: genai.Client, operation, display_name: str):
    """Poll the upload operation until done; bounded by INDEXING_MAX_POLLS."""
    settings = get_settings()
    polls = 0
    while not operation.done:
        if polls >= settings.indexing_max_polls:
            raise UpstreamError(
                "Document indexing timed out",
                details=f"{display_name} not indexed after {polls} checks",
            )
        await asyncio.sleep(settings.indexing_poll_interval_seconds)
        operation = await client.aio.operations.get(operation)
        polls += 1
        log.debug("indexing_wait", file=display_name, polls=polls)
    if operation.error:
        message = operation.error.get("message") if isinstance(operation.error, dict) else str(operation.error)
        raise UpstreamError("Document indexing failed", details=f"{display_name}: {message or 'Unknown error'}")
    return operation


async def index_document(
    client: genai.Client,
    search_scope: str,
    content: bytes,
    display_name: str,
    mime_type: str | None = None,
) -> dict:
    """Upload one document into the store and wait until it is searchable."""
    try:
        operation = await client.aio.file_search_stores.upload_to_file_search_store(
            file=io.BytesIO(content),
            file_search_store_name=search_scope,
            config={"display_name": display_name, "mime_type": mime_type or DEFAULT_MIME_TYPE},
        )
    except genai_errors.APIError as e:
        log.error("document_upload_failed", file=display_name, error=str(e))
        raise UpstreamError("Failed to upload file to File Search Store", details=summarize_exception(e)) from e
    log.info("document_upload_started", file=display_name, size=len(content))
    await wait_for_indexing(client, operation, display_name)
    log.info("document_indexed", file=display_name)
    return {"name": display_name}
