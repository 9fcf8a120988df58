"""
Knowledge feature: Service layer for vector-based knowledge retrieval.

One LangChain InMemoryVectorStore per named collection. Collections live for
the lifetime of the process.
"""

import asyncio
import logging
import threading

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.vectorstores import InMemoryVectorStore

from counselor.core.llm_provider import create_llm
from counselor.features.chat.prompts import RAG_PROMPT
from counselor.features.knowledge.embedding import get_embeddings_model

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "default"


class VectorStoreRegistry:
    """Named collections of embedded document chunks."""

    def __init__(self, embeddings: Embeddings | None = None):
        self._embeddings = embeddings
        self._stores: dict[str, InMemoryVectorStore] = {}
        self._lock = threading.Lock()

    @property
    def embeddings(self) -> Embeddings:
        return self._embeddings or get_embeddings_model()

    def get_store(self, collection: str = DEFAULT_COLLECTION) -> InMemoryVectorStore:
        """Get or create the store for a collection."""
        with self._lock:
            store = self._stores.get(collection)
            if store is None:
                logger.info(f"Creating vector store for collection: {collection}")
                store = InMemoryVectorStore(embedding=self.embeddings)
                self._stores[collection] = store
            return store

    def add_documents(self, documents: list[Document], collection: str = DEFAULT_COLLECTION) -> int:
        if not documents:
            return 0
        self.get_store(collection).add_documents(documents)
        logger.info(f"📚 Added {len(documents)} chunk(s) to collection {collection}")
        return len(documents)

    def query(self, query: str, collection: str = DEFAULT_COLLECTION, limit: int = 5) -> dict:
        """Semantic search in one collection.

        Returns:
            {"success": True, "results": [{"text", "score", "metadata"}]} sorted
            by descending cosine similarity, or {"success": False, "error"}.
        """
        store = self.get_store(collection)
        if not store.store:
            return {"success": True, "results": []}

        try:
            hits = store.similarity_search_with_score(query, k=limit)
        except Exception as e:
            logger.error(f"❌ Error querying collection {collection}: {e}")
            return {"success": False, "error": str(e)}

        return {
            "success": True,
            "results": [
                {"text": doc.page_content, "score": float(score), "metadata": doc.metadata}
                for doc, score in hits
            ],
        }

    def clear(self, collection: str) -> bool:
        """Drop every chunk in a collection. Returns False if it never existed."""
        with self._lock:
            existed = self._stores.pop(collection, None) is not None
        logger.info(f"🗑️ Cleared collection {collection} (existed={existed})")
        return existed


def build_document_context(results: list[dict]) -> str:
    return "\n\n".join(
        f"Document {index}:\n{result['text']}" for index, result in enumerate(results, start=1)
    )


async def ask_question(
    registry: VectorStoreRegistry,
    question: str,
    collection: str = DEFAULT_COLLECTION,
    model: str | None = None,
) -> dict:
    """Answer a question from the documents in a collection.

    Returns:
        {"success": True, "answer", "sourceDocuments"} or
        {"success": False, "error"} when nothing relevant is stored or the
        model call fails.
    """
    retrieval = await asyncio.to_thread(registry.query, question, collection)
    if not retrieval["success"] or not retrieval["results"]:
        return {"success": False, "error": retrieval.get("error") or "No relevant documents found"}

    prompt = RAG_PROMPT.format(
        document_context=build_document_context(retrieval["results"]),
        question=question,
    )

    try:
        llm = create_llm(model)
        response = await llm.ainvoke(prompt)
    except Exception as e:
        logger.error(f"❌ Error asking question: {e}")
        return {"success": False, "error": str(e)}

    return {
        "success": True,
        "answer": response.content,
        "sourceDocuments": [
            {"pageContent": r["text"], "metadata": r["metadata"]} for r in retrieval["results"]
        ],
    }


vector_store_registry = VectorStoreRegistry()
