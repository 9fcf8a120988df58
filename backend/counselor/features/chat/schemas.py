"""
Chat feature: Schemas for request/response models.
"""

from pydantic import BaseModel, ConfigDict, Field


class WebSearchResult(BaseModel):
    """A single web search hit surfaced to the student as a source."""
    url: str
    title: str
    snippet: str = ""


class ModelInfo(BaseModel):
    """Display metadata for a chat model."""
    id: str
    name: str
    description: str
    features: list[str] = []
    developer: str
    parameters: str


class ModelResponse(BaseModel):
    """Outcome of one orchestrated model call (never raised, always returned)."""
    success: bool
    content: str | None = None
    error: str | None = None
    web_search_attempted: bool = False
    web_search_results: list[WebSearchResult] | None = None
    model: str | None = None
    response_time_ms: int | None = None
    tool_calls_made: int = 0
    is_timeout: bool = False


class ChatRequest(BaseModel):
    """Body of POST /api/chat (camelCase on the wire, as sent by the front end)."""
    model_config = ConfigDict(populate_by_name=True)

    message: str | None = None
    pdf_content: str | None = Field(default=None, alias="pdfContent")
    profile_context: str | None = Field(default=None, alias="profileContext")
    is_profile_query: bool = Field(default=False, alias="isProfileQuery")
    is_web_search: bool = Field(default=True, alias="isWebSearch")
    session_id: str | None = Field(default=None, alias="sessionId")


class ChatResponse(BaseModel):
    """Body returned by POST /api/chat."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    model: ModelInfo | None = None
    thinking: list[str] = []
    error: str | None = None
    web_search_results: list[WebSearchResult] | None = Field(
        default=None, serialization_alias="webSearchResults"
    )
    session_id: str = Field(serialization_alias="sessionId")
