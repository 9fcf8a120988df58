"""
Knowledge feature: Retrieval endpoints (document upload, semantic query, QA).
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from counselor.config import get_settings
from counselor.core.dependencies import get_document_ingestor, get_vector_store_registry
from counselor.core.exceptions import DocumentProcessingError
from counselor.features.knowledge.ingestion import DocumentIngestor
from counselor.features.knowledge.schemas import (
    AskRequest,
    DeleteCollectionRequest,
    QueryRequest,
)
from counselor.features.knowledge.service import VectorStoreRegistry, ask_question

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Knowledge Base"])


def _fail(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@router.post("/process-document")
async def process_document(
    request: Request,
    ingestor: DocumentIngestor = Depends(get_document_ingestor),
):
    """Upload a PDF, DOCX, CSV or text file into a collection.

    Form fields: `file`, optional `collection` (default "default"); every other
    field is stored as chunk metadata.
    """
    if "multipart/form-data" not in request.headers.get("content-type", ""):
        return _fail(400, "Request must be multipart/form-data")

    form = await request.form()
    upload = form.get("file")
    collection = form.get("collection") or "default"
    metadata = {
        key: value for key, value in form.items()
        if key not in ("file", "collection") and isinstance(value, str)
    }

    if not isinstance(upload, UploadFile):
        return _fail(400, "No file provided")

    settings = get_settings()
    data = await upload.read()
    if len(data) > settings.max_upload_bytes:
        return _fail(400, f"File size too large. Maximum size is {settings.MAX_UPLOAD_MB}MB")

    logger.info(
        f"📥 Processing document: {upload.filename}, size: {len(data)} bytes, "
        f"type: {upload.content_type}, collection: {collection}"
    )

    try:
        result = await run_in_threadpool(
            ingestor.process,
            data,
            upload.filename or "upload",
            upload.content_type,
            collection,
            metadata,
        )
    except DocumentProcessingError as e:
        return _fail(500, f"{e.message}: {e.detail}" if e.detail else e.message)

    return result


@router.get("/query")
async def query_get(
    query: str | None = None,
    collection: str = "default",
    limit: int = 5,
    registry: VectorStoreRegistry = Depends(get_vector_store_registry),
):
    """Semantic search via query string."""
    if not query:
        return _fail(400, "Query parameter is required")
    return await run_in_threadpool(registry.query, query, collection, limit)


@router.post("/query")
async def query_post(
    data: QueryRequest,
    registry: VectorStoreRegistry = Depends(get_vector_store_registry),
):
    """Semantic search via JSON body."""
    if not data.query:
        return _fail(400, "Query is required in request body")
    return await run_in_threadpool(registry.query, data.query, data.collection, data.limit)


@router.post("/ask")
async def ask(
    data: AskRequest,
    registry: VectorStoreRegistry = Depends(get_vector_store_registry),
):
    """Answer a question from the documents of one collection."""
    if not data.question:
        return _fail(400, "Question is required in request body")

    logger.info(f"❓ Processing question: \"{data.question}\" using collection: {data.collection}")
    return await ask_question(registry, data.question, data.collection, data.model_name)


@router.post("/delete-collection")
async def delete_collection(
    data: DeleteCollectionRequest,
    registry: VectorStoreRegistry = Depends(get_vector_store_registry),
):
    if not data.collection_name:
        return _fail(400, "Collection name is required")

    registry.clear(data.collection_name)
    return {"success": True, "message": f"Collection {data.collection_name} deleted successfully"}
