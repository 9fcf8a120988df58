"""
FastAPI dependency injection functions.

Every store is process-wide; tests override these with
`app.dependency_overrides` to get isolated instances.
"""

from functools import lru_cache

from counselor.features.chat.sessions import SessionTracker, session_tracker
from counselor.features.knowledge.ingestion import DocumentIngestor
from counselor.features.knowledge.service import VectorStoreRegistry, vector_store_registry
from counselor.features.profile.service import ProfileStore, profile_store


def get_session_tracker() -> SessionTracker:
    """Dependency: shared chat session tracker."""
    return session_tracker


def get_profile_store() -> ProfileStore:
    """Dependency: shared in-memory profile store."""
    return profile_store


def get_vector_store_registry() -> VectorStoreRegistry:
    return vector_store_registry


@lru_cache
def get_document_ingestor() -> DocumentIngestor:
    """Dependency: ingestor writing into the shared vector store registry."""
    return DocumentIngestor(vector_store_registry)
