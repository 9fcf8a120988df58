"""
Documents feature: Upload endpoints that turn files into chat context.
"""

import logging

from fastapi import APIRouter, File, HTTPException, Request, UploadFile, status
from starlette.concurrency import run_in_threadpool

from counselor.config import get_settings
from counselor.core.exceptions import (
    DocumentProcessingError,
    UnsupportedFileError,
    app_error_to_http,
)
from counselor.features.documents.extraction import extract_file_text, extract_pdf_text

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/process-pdf")
async def process_pdf(pdf: UploadFile | None = File(default=None)):
    """Extract the text of a single PDF (form field `pdf`)."""
    if pdf is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No PDF file provided")

    data = await pdf.read()
    logger.info(f"📄 Processing PDF file: {pdf.filename}, size: {len(data)} bytes, type: {pdf.content_type}")

    try:
        text = await run_in_threadpool(extract_pdf_text, data)
    except UnsupportedFileError as e:
        raise app_error_to_http(e, status.HTTP_400_BAD_REQUEST)
    except DocumentProcessingError as e:
        raise app_error_to_http(e, status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"✅ Extracted {len(text)} chars from {pdf.filename}")
    return {"success": True, "text": text}


@router.post("/process-files")
async def process_files(request: Request, files: list[UploadFile] | None = File(default=None)):
    """Extract text from several PDFs and images (form field `files`)."""
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" not in content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request must be multipart/form-data",
        )
    if not files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No files provided")

    settings = get_settings()
    texts: list[str] = []

    for upload in files:
        data = await upload.read()
        if len(data) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File {upload.filename} is too large. Maximum size is {settings.MAX_UPLOAD_MB}MB.",
            )
        try:
            texts.append(await run_in_threadpool(extract_file_text, data, upload.content_type))
        except UnsupportedFileError as e:
            raise app_error_to_http(e, status.HTTP_400_BAD_REQUEST)
        except DocumentProcessingError as e:
            raise app_error_to_http(e, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return {"text": "\n\n".join(texts)}
