"""
Knowledge feature: Document ingestion pipeline.

1. Save the upload under DOCS_DIR as <uuid>.<ext>.
2. Load it with a LangChain loader chosen by MIME type.
3. Attach documentId / filename / createdAt plus caller metadata.
4. Chunk (CHUNK_SIZE / CHUNK_OVERLAP) and add to the collection's vector store.
"""

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

import docx
from langchain_community.document_loaders import CSVLoader, PyPDFLoader, TextLoader
from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter

from counselor.config import get_settings
from counselor.core.exceptions import DocumentProcessingError
from counselor.features.knowledge.service import VectorStoreRegistry

logger = logging.getLogger(__name__)


def _load_docx(path: Path) -> list[Document]:
    document = docx.Document(str(path))
    paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
    return [Document(page_content="\n".join(paragraphs), metadata={"source": str(path)})]


def load_documents(path: Path, content_type: str | None) -> list[Document]:
    """Load a saved file; anything that is not PDF, CSV or DOCX is read as text."""
    match content_type:
        case "application/pdf":
            return PyPDFLoader(str(path)).load()
        case "text/csv":
            return CSVLoader(str(path)).load()
        case "application/vnd.openxmlformats-officedocument.wordprocessingml.document":
            return _load_docx(path)
        case _:
            return TextLoader(str(path), encoding="utf-8").load()


class DocumentIngestor:
    """Turns uploaded files into searchable chunks in a collection."""

    def __init__(self, registry: VectorStoreRegistry, docs_dir: str | None = None):
        settings = get_settings()
        self.registry = registry
        self.docs_dir = Path(docs_dir or settings.DOCS_DIR)
        self.splitter = RecursiveCharacterTextSplitter(
            chunk_size=settings.CHUNK_SIZE,
            chunk_overlap=settings.CHUNK_OVERLAP,
        )

    def process(
        self,
        file_bytes: bytes,
        filename: str,
        content_type: str | None,
        collection: str = "default",
        metadata: dict | None = None,
    ) -> dict:
        """Ingest one file.

        Raises:
            DocumentProcessingError: If the file cannot be saved, loaded or embedded.
        """
        document_id = str(uuid.uuid4())
        extension = filename.rsplit(".", 1)[-1] if "." in filename else ""
        stored_name = f"{document_id}.{extension}"
        path = self.docs_dir / stored_name

        try:
            self.docs_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(file_bytes)
            logger.info(f"💾 Saved file to {path}")

            raw_docs = load_documents(path, content_type)
            created_at = datetime.now(timezone.utc).isoformat()
            for doc in raw_docs:
                doc.metadata = {
                    **doc.metadata,
                    **(metadata or {}),
                    "documentId": document_id,
                    "filename": filename,
                    "createdAt": created_at,
                }

            chunks = self.splitter.split_documents(raw_docs)
            logger.info(f"✅ Split {filename} into {len(chunks)} chunks")
            self.registry.add_documents(chunks, collection)
        except Exception as e:
            logger.error(f"❌ Error processing document {filename}: {e}")
            raise DocumentProcessingError(f"Failed to process {filename}", str(e)) from e

        return {
            "success": True,
            "documentId": document_id,
            "text": "\n\n".join(doc.page_content for doc in raw_docs),
            "chunks": len(chunks),
            "metadata": {
                "filename": filename,
                "filePath": stored_name,
                "collectionName": collection,
            },
        }
