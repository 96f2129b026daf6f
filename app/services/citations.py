"""Source citations rendered from grounding metadata."""

from typing import Any

from app.services.upstream import field

CITATION_HEADING = "\n\n📚 **Mənbələr:**\n"
DOCUMENT_PLACEHOLDER = "Sənəd"
WEB_PLACEHOLDER = "Veb mənbə"
SOURCE_PLACEHOLDER = "Mənbə"


def _file_label(file_chunk: Any) -> str:
    uri = field(file_chunk, "uri")
    label = (
        field(file_chunk, "display_name", "displayName", "file_name", "fileName", "title")
        or (str(uri).rstrip("/").rsplit("/", 1)[-1] if uri else None)
        or DOCUMENT_PLACEHOLDER
    )
    segment = field(file_chunk, "segment")
    if isinstance(segment, (str, int)) and str(segment):
        label += f" ({segment})"
    return str(label)


def source_label(chunk: Any) -> str:
    """Label for one grounding chunk: file search, then web, then generic fields."""
    file_chunk = field(chunk, "file_search", "fileSearch", "retrieved_context", "retrievedContext")
    if file_chunk is not None:
        return _file_label(file_chunk)
    web = field(chunk, "web")
    if web is not None:
        return str(field(web, "uri", "title") or WEB_PLACEHOLDER)
    return str(field(chunk, "title", "uri") or SOURCE_PLACEHOLDER)


def citation_lines(metadata: Any) -> list[str]:
    chunks = field(metadata, "grounding_chunks", "groundingChunks") or []
    seen: set[str] = set()
    lines = []
    for chunk in chunks:
        label = source_label(chunk)
        if label not in seen:
            seen.add(label)
            lines.append(f"{len(seen)}. {label}")
    if lines:
        return lines

    supports = field(metadata, "grounding_supports", "groundingSupports") or []
    for index, support in enumerate(supports):
        segment = field(support, "segment")
        if segment is None:
            continue
        text = segment if isinstance(segment, str) else field(segment, "text")
        lines.append(f"{len(lines) + 1}. {text or f'Bölmə {index + 1}'}")
    return lines


def render_citations(metadata: Any) -> str:
    """Heading plus numbered unique sources, or an empty string."""
    if metadata is None:
        return ""
    lines = citation_lines(metadata)
    if not lines:
        return ""
    return CITATION_HEADING + "".join(line + "\n" for line in lines)
