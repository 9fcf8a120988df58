"""
Tests for embeddings, the vector store registry, ingestion and retrieval QA.
"""

import asyncio
import math

import pytest
from fastapi.testclient import TestClient
from langchain_core.documents import Document
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from counselor.core.dependencies import get_document_ingestor, get_vector_store_registry
from counselor.features.knowledge import service as knowledge_service
from counselor.features.knowledge.embedding import HashEmbeddings
from counselor.features.knowledge.ingestion import DocumentIngestor
from counselor.features.knowledge.service import VectorStoreRegistry, ask_question
from counselor.main import create_app

ESSAY_TIPS = "Start your personal statement early and revise it at least three times."
DEADLINES = "Early decision applications are usually due on November 1."


@pytest.fixture
def registry():
    return VectorStoreRegistry(HashEmbeddings(dimensions=64))


@pytest.fixture
def ingestor(registry, tmp_path):
    return DocumentIngestor(registry, docs_dir=str(tmp_path))


# -- HashEmbeddings --

class TestHashEmbeddings:
    def test_unit_length_and_dimensions(self):
        vector = HashEmbeddings(dimensions=32).embed_query("college essay")
        assert len(vector) == 32
        assert math.isclose(math.sqrt(sum(v * v for v in vector)), 1.0)

    def test_deterministic(self):
        embeddings = HashEmbeddings()
        assert embeddings.embed_query("abc") == embeddings.embed_documents(["abc"])[0]

    def test_empty_text_is_zero_vector(self):
        assert HashEmbeddings(dimensions=4).embed_query("") == [0.0, 0.0, 0.0, 0.0]


# -- VectorStoreRegistry --

class TestRegistry:
    def test_empty_collection(self, registry):
        assert registry.query("anything", "nothing-here") == {"success": True, "results": []}

    def test_exact_text_ranks_first(self, registry):
        registry.add_documents(
            [Document(page_content=ESSAY_TIPS, metadata={"n": 1}), Document(page_content=DEADLINES, metadata={"n": 2})],
            "guides",
        )
        result = registry.query(DEADLINES, "guides", limit=2)

        assert result["success"]
        top = result["results"][0]
        assert top["text"] == DEADLINES
        assert top["metadata"] == {"n": 2}
        assert math.isclose(top["score"], 1.0, rel_tol=1e-6)

    def test_collections_are_isolated(self, registry):
        registry.add_documents([Document(page_content=ESSAY_TIPS)], "a")
        assert registry.query(ESSAY_TIPS, "b")["results"] == []

    def test_clear(self, registry):
        registry.add_documents([Document(page_content=ESSAY_TIPS)], "a")
        assert registry.clear("a") is True
        assert registry.query(ESSAY_TIPS, "a")["results"] == []
        assert registry.clear("a") is False


# -- DocumentIngestor --

class TestIngestion:
    def test_text_file(self, ingestor, registry, tmp_path):
        result = ingestor.process(
            ESSAY_TIPS.encode(), "tips.txt", "text/plain", collection="guides", metadata={"source": "counselor"}
        )

        assert result["success"]
        assert result["chunks"] == 1
        assert result["text"] == ESSAY_TIPS
        assert result["metadata"]["collectionName"] == "guides"
        assert (tmp_path / result["metadata"]["filePath"]).read_bytes() == ESSAY_TIPS.encode()

        hit = registry.query(ESSAY_TIPS, "guides")["results"][0]
        assert hit["metadata"]["documentId"] == result["documentId"]
        assert hit["metadata"]["filename"] == "tips.txt"
        assert hit["metadata"]["source"] == "counselor"

    def test_long_text_is_chunked(self, ingestor):
        text = "\n\n".join(f"Paragraph {i}: " + "word " * 60 for i in range(10))
        result = ingestor.process(text.encode(), "long.txt", "text/plain")
        assert result["chunks"] > 1


# -- ask_question --

class TestAskQuestion:
    def test_no_documents(self, registry):
        result = asyncio.run(ask_question(registry, "When is early decision due?", "empty"))
        assert result == {"success": False, "error": "No relevant documents found"}

    def test_answer_with_sources(self, registry, monkeypatch):
        registry.add_documents([Document(page_content=DEADLINES)], "guides")
        fake = FakeListChatModel(responses=["November 1."])
        monkeypatch.setattr(knowledge_service, "create_llm", lambda model=None: fake)

        result = asyncio.run(ask_question(registry, "When is early decision due?", "guides"))

        assert result["success"]
        assert result["answer"] == "November 1."
        assert result["sourceDocuments"][0]["pageContent"] == DEADLINES

    def test_retrieval_runs_off_the_event_loop(self, registry, monkeypatch):
        registry.add_documents([Document(page_content=DEADLINES)], "guides")
        monkeypatch.setattr(knowledge_service, "create_llm", lambda model=None: FakeListChatModel(responses=["ok"]))
        query = registry.query
        loop_states = []

        def recording_query(*args, **kwargs):
            try:
                asyncio.get_running_loop()
                loop_states.append(True)
            except RuntimeError:
                loop_states.append(False)
            return query(*args, **kwargs)

        monkeypatch.setattr(registry, "query", recording_query)
        result = asyncio.run(ask_question(registry, "deadline?", "guides"))

        assert result["success"]
        assert loop_states == [False]

    def test_model_failure_is_reported(self, registry, monkeypatch):
        registry.add_documents([Document(page_content=DEADLINES)], "guides")

        def broken(model=None):
            raise ValueError("Unknown RAG provider")

        monkeypatch.setattr(knowledge_service, "create_llm", broken)
        result = asyncio.run(ask_question(registry, "deadline?", "guides"))
        assert result == {"success": False, "error": "Unknown RAG provider"}


# -- Routes --

@pytest.fixture
def client(registry, ingestor):
    app = create_app()
    app.dependency_overrides[get_vector_store_registry] = lambda: registry
    app.dependency_overrides[get_document_ingestor] = lambda: ingestor
    return TestClient(app)


class TestKnowledgeRoutes:
    def test_upload_query_delete(self, client):
        upload = client.post(
            "/api/langchain/process-document",
            files={"file": ("tips.txt", ESSAY_TIPS.encode(), "text/plain")},
            data={"collection": "guides", "source": "upload"},
        )
        assert upload.status_code == 200
        assert upload.json()["chunks"] == 1

        results = client.get("/api/langchain/query", params={"query": ESSAY_TIPS, "collection": "guides"}).json()
        assert results["results"][0]["metadata"]["source"] == "upload"

        posted = client.post("/api/langchain/query", json={"query": ESSAY_TIPS, "collection": "guides", "limit": 1})
        assert len(posted.json()["results"]) == 1

        deleted = client.post("/api/langchain/delete-collection", json={"collectionName": "guides"})
        assert deleted.json() == {"success": True, "message": "Collection guides deleted successfully"}

    def test_upload_requires_file(self, client):
        response = client.post(
            "/api/langchain/process-document",
            files={"attachment": ("tips.txt", b"text", "text/plain")},
            data={"collection": "guides"},
        )
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "No file provided"}

    def test_upload_requires_multipart(self, client):
        response = client.post("/api/langchain/process-document", json={"collection": "guides"})
        assert response.json() == {"success": False, "error": "Request must be multipart/form-data"}

    def test_validation_errors(self, client):
        assert client.get("/api/langchain/query").status_code == 400
        assert client.post("/api/langchain/ask", json={}).status_code == 400
        assert client.post("/api/langchain/delete-collection", json={}).status_code == 400

    def test_ask_without_documents(self, client):
        body = client.post("/api/langchain/ask", json={"question": "Anything?", "collection": "empty"}).json()
        assert body == {"success": False, "error": "No relevant documents found"}
