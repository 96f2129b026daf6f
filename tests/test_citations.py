from google.genai import types

from app.services.citations import CITATION_HEADING, render_citations, source_label


def test_duplicate_labels_render_once():
    metadata = {
        "grounding_chunks": [
            {"file_search": {"display_name": "YHQ.pdf"}},
            {"file_search": {"display_name": "YHQ.pdf"}},
        ]
    }
    assert render_citations(metadata) == CITATION_HEADING + "1. YHQ.pdf\n"


def test_numbering_follows_first_appearance():
    metadata = {
        "groundingChunks": [
            {"fileSearch": {"displayName": "b.pdf"}},
            {"web": {"uri": "https://e-qanun.az/1", "title": "Qanun"}},
            {"fileSearch": {"displayName": "b.pdf"}},
            {"fileSearch": {"displayName": "a.pdf"}},
        ]
    }
    assert render_citations(metadata) == (
        CITATION_HEADING + "1. b.pdf\n2. https://e-qanun.az/1\n3. a.pdf\n"
    )


def test_label_fallbacks():
    assert source_label({"file_search": {"uri": "stores/x/documents/imx.pdf"}}) == "imx.pdf"
    assert source_label({"file_search": {"display_name": "imx.pdf", "segment": "3.1"}}) == "imx.pdf (3.1)"
    assert source_label({"file_search": {}}) == "Sənəd"
    assert source_label({"web": {"title": "Portal"}}) == "Portal"
    assert source_label({"web": {}}) == "Veb mənbə"
    assert source_label({"title": "Generic"}) == "Generic"
    assert source_label({"uri": "https://x.az"}) == "https://x.az"
    assert source_label({}) == "Mənbə"


def test_supports_listed_when_no_chunks():
    metadata = {
        "grounding_supports": [
            {"segment": {"text": "Birinci hissə"}},
            {"confidence_scores": [0.9]},
            {"segment": {"text": "İkinci hissə"}},
        ]
    }
    assert render_citations(metadata) == CITATION_HEADING + "1. Birinci hissə\n2. İkinci hissə\n"


def test_nothing_to_cite():
    assert render_citations(None) == ""
    assert render_citations({}) == ""
    assert render_citations({"grounding_chunks": [], "grounding_supports": []}) == ""


def test_sdk_objects_are_accepted():
    metadata = types.GroundingMetadata(
        grounding_chunks=[
            types.GroundingChunk(retrieved_context=types.GroundingChunkRetrievedContext(title="İXM.pdf")),
            types.GroundingChunk(web=types.GroundingChunkWeb(uri="https://e-qanun.az/2")),
            types.GroundingChunk(retrieved_context=types.GroundingChunkRetrievedContext(title="İXM.pdf")),
        ]
    )
    assert render_citations(metadata) == CITATION_HEADING + "1. İXM.pdf\n2. https://e-qanun.az/2\n"


def test_document_label_prefers_display_name_over_file_name():
    assert source_label({"file_search": {"display_name": "Qaydalar", "file_name": "files/abc123"}}) == "Qaydalar"
    assert source_label({"fileSearch": {"fileName": "files/abc123"}}) == "files/abc123"
