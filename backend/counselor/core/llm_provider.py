"""
Provider-agnostic LangChain factories.

Used by the retrieval QA endpoint and the vector store. Switch provider by
changing env vars, no code changes needed:
  RAG_PROVIDER=openai | openrouter | groq | gemini
  RAG_MODEL=gpt-3.5-turbo | deepseek/deepseek-chat | llama-3.1-70b-versatile
"""

import logging

from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel

from counselor.config import get_settings, is_usable_api_key

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


def create_llm(model: str | None = None) -> BaseChatModel:
    """Create the chat model used to answer questions over retrieved documents.

    Args:
        model: Optional model override (defaults to RAG_MODEL).

    Returns:
        BaseChatModel: A LangChain-compatible chat model.

    Raises:
        ValueError: If provider is not supported.
    """
    settings = get_settings()
    model_name = model or settings.RAG_MODEL

    match settings.RAG_PROVIDER:
        case "openai":
            from langchain_openai import ChatOpenAI

            return ChatOpenAI(
                model=model_name,
                api_key=settings.RAG_API_KEY or settings.OPENAI_API_KEY,
                temperature=settings.RAG_TEMPERATURE,
                max_tokens=settings.RAG_MAX_TOKENS,
            )

        case "openrouter":
            from langchain_openai import ChatOpenAI

            return ChatOpenAI(
                model=model_name,
                api_key=settings.RAG_API_KEY or settings.OPENROUTER_API_KEY,
                base_url=OPENROUTER_BASE_URL,
                temperature=settings.RAG_TEMPERATURE,
                max_tokens=settings.RAG_MAX_TOKENS,
            )

        case "groq":
            from langchain_groq import ChatGroq

            return ChatGroq(
                model=model_name,
                api_key=settings.RAG_API_KEY,
                temperature=settings.RAG_TEMPERATURE,
                max_tokens=settings.RAG_MAX_TOKENS,
            )

        case "gemini":
            from langchain_google_genai import ChatGoogleGenerativeAI

            return ChatGoogleGenerativeAI(
                model=model_name,
                google_api_key=settings.RAG_API_KEY,
                temperature=settings.RAG_TEMPERATURE,
                max_output_tokens=settings.RAG_MAX_TOKENS,
            )

        case _:
            raise ValueError(
                f"Unknown RAG provider: '{settings.RAG_PROVIDER}'. "
                f"Supported: openai, openrouter, groq, gemini"
            )


def create_embeddings() -> Embeddings:
    """Create an embedding model based on env configuration.

    OpenAI embeddings when a usable key is configured, otherwise the local
    deterministic hash embedding so ingestion still works offline.
    """
    settings = get_settings()

    if is_usable_api_key(settings.OPENAI_API_KEY):
        from langchain_openai import OpenAIEmbeddings

        logger.info("Creating embeddings using OpenAI")
        return OpenAIEmbeddings(
            model=settings.EMBEDDING_MODEL,
            api_key=settings.OPENAI_API_KEY,
        )

    from counselor.features.knowledge.embedding import HashEmbeddings

    logger.warning("No OpenAI API key provided. Using local embeddings fallback.")
    return HashEmbeddings(dimensions=settings.EMBEDDING_DIMENSIONS)
