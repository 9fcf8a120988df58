"""
Chat feature: Display metadata for the models the counselor can answer with.
"""

from counselor.features.chat.schemas import ModelInfo

MODEL_INFO: dict[str, ModelInfo] = {
    # OpenAI
    "gpt-4.1-mini": ModelInfo(
        id="gpt-4.1-mini",
        name="GPT-4.1 Mini",
        description="Fast OpenAI model with tool calling, used for web-assisted answers",
        features=["Reasoning", "Advising", "Web Browsing", "Problem-solving"],
        developer="OpenAI",
        parameters="undisclosed",
    ),
    "gpt-4o": ModelInfo(
        id="gpt-4o",
        name="GPT-4o",
        description="OpenAI's most advanced model, with excellent reasoning capabilities",
        features=["Reasoning", "Advising", "Problem-solving", "Creativity"],
        developer="OpenAI",
        parameters="200 billion",
    ),
    "gpt-4-turbo": ModelInfo(
        id="gpt-4-turbo",
        name="GPT-4 Turbo",
        description="A powerful large language model with strong reasoning capabilities",
        features=["Reasoning", "Planning", "Advising", "Problem-solving"],
        developer="OpenAI",
        parameters="100 billion",
    ),
    "gpt-3.5-turbo": ModelInfo(
        id="gpt-3.5-turbo",
        name="GPT-3.5 Turbo",
        description="A versatile language model with good general knowledge",
        features=["Conversation", "Content generation", "Information retrieval"],
        developer="OpenAI",
        parameters="13 billion",
    ),
    # OpenRouter
    "openai/gpt-3.5-turbo": ModelInfo(
        id="openai/gpt-3.5-turbo",
        name="GPT-3.5 Turbo",
        description="A versatile language model with good general knowledge",
        features=["Conversation", "Content generation", "Information retrieval"],
        developer="OpenAI",
        parameters="13 billion",
    ),
    "deepseek/deepseek-chat": ModelInfo(
        id="deepseek/deepseek-chat",
        name="DeepSeek Chat",
        description="A powerful large language model with strong reasoning capabilities",
        features=["Reasoning", "Planning", "Advising", "Problem-solving"],
        developer="DeepSeek",
        parameters="7 billion",
    ),
    "microsoft/mai-ds-r1:free": ModelInfo(
        id="microsoft/mai-ds-r1:free",
        name="Microsoft MAI DS-R1 (Free)",
        description="Microsoft's free model with excellent reasoning capabilities",
        features=["Reasoning", "Advising", "Problem-solving", "Free tier"],
        developer="Microsoft",
        parameters="7 billion",
    ),
}


def get_model_info(model: str | None) -> ModelInfo | None:
    """Look up display info; providers sometimes return dated ids like `gpt-4o-2024-08-06`."""
    if not model:
        return None
    if model in MODEL_INFO:
        return MODEL_INFO[model]
    for model_id, info in MODEL_INFO.items():
        if model.startswith(f"{model_id}-"):
            return info
    return None
