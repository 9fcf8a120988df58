from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    query: str | None = None
    collection: str = "default"
    limit: int = 5


class AskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    question: str | None = None
    collection: str = "default"
    model_name: str | None = Field(default=None, alias="modelName")


class DeleteCollectionRequest(BaseModel):
    collection_name: str | None = Field(default=None, alias="collectionName")
