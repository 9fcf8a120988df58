"""
Chat feature: Model orchestration.

Talks to an OpenAI-compatible chat completion endpoint (OpenAI or OpenRouter)
over httpx, with per-attempt timeouts, exponential backoff, one round of
`web_search` tool calls and a two-tier model fallback. Without a usable API key
every answer comes from `get_mock_response` so the UI still works locally.
"""

import asyncio
import json
import logging
import time
from urllib.parse import urlparse

import httpx

from counselor.config import get_settings, is_usable_api_key, mask_key
from counselor.core.exceptions import ModelProviderError, ProviderTimeoutError
from counselor.features.chat.prompts import (
    SEARCH_FAILED_NOTE,
    SEARCH_INSTRUCTION,
    create_system_prompt,
)
from counselor.features.chat.schemas import ModelResponse, WebSearchResult
from counselor.features.chat.web_search import WEB_SEARCH_TOOL, perform_web_search

logger = logging.getLogger(__name__)

PROVIDER_LABELS = {"openai": "OpenAI", "openrouter": "OpenRouter"}
OPENROUTER_COMPLETIONS_VERSION = "2023-12-01"


# ── Citations ────────────────────────────────────────────

def _domain_of(url: str) -> str | None:
    host = urlparse(url).hostname if url else None
    if not host:
        return None
    return host.removeprefix("www.")


def format_content_with_citations(content: str, web_search_results: list[WebSearchResult] | None) -> str:
    """Append a numbered `Sources` footer, one line per distinct domain.

    The citation number is the 1-based position of the first result from that
    domain. Results with unparseable URLs are skipped.
    """
    if not content or not web_search_results:
        return content or ""

    first_index: dict[str, int] = {}
    for index, result in enumerate(web_search_results):
        domain = _domain_of(result.url)
        if domain and domain not in first_index:
            first_index[domain] = index + 1

    if not first_index:
        return content

    lines = []
    for result in web_search_results:
        domain = _domain_of(result.url)
        number = first_index.pop(domain, None) if domain else None
        if number is not None:
            lines.append(f"[{number}] {result.title or domain} - {result.url}\n")

    return content + "\n\n---\n\n**Sources:**\n\n" + "".join(lines)


# ── Mock responses (no usable API key) ───────────────────

MOCK_MODEL = "gpt-4.1-mini"

_MOCK_PROJECT_DETAILS = {
    "title": "Environmental Monitoring System",
    "description": "A comprehensive IoT-based system for monitoring environmental factors such as air quality, temperature, and humidity in urban areas.",
    "difficultyLevel": "Intermediate",
    "timeCommitment": "3-4 months",
    "skillsRequired": ["Arduino programming", "Sensor integration", "Data analysis", "Cloud computing"],
    "materialsCost": "$150-200",
    "impactAreas": ["Environmental science", "Public health", "Urban planning"],
    "learningOutcomes": ["Hardware-software integration", "Environmental data analysis", "IoT system design"],
    "implementationSteps": [
        "Research and select appropriate environmental sensors",
        "Design and build the sensor housing and circuit",
        "Program the microcontroller for data collection",
        "Develop a web dashboard for data visualization",
        "Deploy multiple units across different locations",
    ],
    "additionalResources": [
        {"title": "Arduino Environmental Monitoring Guide", "url": "https://example.com/arduino-guide"},
        {"title": "IoT Cloud Platforms Comparison", "url": "https://example.com/iot-cloud-comparison"},
    ],
}

_MOCK_COMPETITION_DETAILS = {
    "name": "International Science and Engineering Fair (ISEF)",
    "organizer": "Society for Science",
    "website": "https://www.societyforscience.org/isef/",
    "description": "The world's largest pre-college science competition that provides a platform for high school students to showcase their independent research.",
    "eligibility": "High school students grades 9-12",
    "deadline": "Varies by region, typically January-February for local fairs",
    "prizes": ["Grand Award: $75,000", "Category Awards: $5,000-$50,000", "Special Awards from various organizations"],
    "categories": [
        "Animal Sciences", "Behavioral Sciences", "Biochemistry", "Biomedical Engineering",
        "Cellular & Molecular Biology", "Chemistry", "Computational Biology", "Computer Science",
        "Earth & Environmental Sciences", "Engineering", "Materials Science", "Mathematics",
        "Microbiology", "Physics", "Plant Sciences", "Robotics",
    ],
    "applicationProcess": [
        "Participate in a local or regional science fair",
        "Win nomination to attend ISEF from your regional fair",
        "Complete the ISEF application forms",
        "Prepare your research paper and presentation materials",
    ],
    "tips": [
        "Start your project early, ideally 6-12 months before the fair",
        "Find a mentor in your research area",
        "Document your process thoroughly in a research notebook",
        "Practice your presentation skills extensively",
    ],
}

_MOCK_COMPETITIONS_ANSWER = (
    "Based on your interests, here are some academic competitions to consider:\n\n"
    "1. [International Science and Engineering Fair (ISEF)](https://www.societyforscience.org/isef/) - "
    "The world's largest pre-college science competition.\n\n"
    "2. [The Breakthrough Junior Challenge](https://breakthroughjuniorchallenge.org/) - "
    "A global competition for students to inspire creative thinking about science.\n\n"
    "3. [International Mathematical Olympiad (IMO)](https://www.imo-official.org/) - "
    "The world championship mathematics competition for high school students.\n\n"
    "4. [DECA International Career Development Conference](https://www.deca.org/) - "
    "Business-focused competition for emerging leaders and entrepreneurs."
)

_MOCK_COMPETITION_RESULTS = [
    WebSearchResult(
        title="International Science and Engineering Fair",
        url="https://www.societyforscience.org/isef/",
        snippet="The International Science and Engineering Fair (ISEF) is the world's largest international pre-college science competition.",
    ),
    WebSearchResult(
        title="The Breakthrough Junior Challenge",
        url="https://breakthroughjuniorchallenge.org/",
        snippet="An annual global competition for students to inspire creative thinking about science.",
    ),
]

MOCK_ANSWERS = [
    "**Excellent Question!**\n\nBased on your interest in college applications, here are some recommended extracurricular activities:\n\n"
    "- **Leadership Positions**: Seek roles in student government or club leadership\n"
    "- **Community Service**: Volunteer consistently with organizations aligned to your interests\n"
    "- **Academic Competitions**: Participate in subject-specific competitions relevant to your intended major\n"
    "- **Personal Projects**: Develop independent initiatives that showcase your passions\n\n"
    "Remember, colleges value depth over breadth. It's better to be deeply involved in a few activities than superficially involved in many.\n\n"
    "What specific field or major are you considering?",

    "**Great to hear from you!**\n\nHere's my advice for planning your extracurricular activities:\n\n"
    "**Focus on Quality, Not Quantity**\n"
    "- Commit deeply to 2-4 activities that genuinely interest you\n"
    "- Seek leadership roles or increasing responsibility over time\n"
    "- Maintain consistent involvement throughout high school\n\n"
    "**Align Activities with Your Interests**\n"
    "- If you love science, join science clubs, competitions, or research opportunities\n"
    "- For humanities, consider debate, writing clubs, or community service\n"
    "- For arts, develop your portfolio through continuous practice and exhibition\n\n"
    "Would you like more specific recommendations based on your particular interests?",

    "**Thanks for reaching out!**\n\nWhen planning extracurricular activities for college applications, consider these key strategies:\n\n"
    "1. **Demonstrate passion** through sustained commitment to activities related to your intended field of study\n"
    "2. **Show initiative** by creating new programs or expanding existing ones\n"
    "3. **Develop transferable skills** like leadership, teamwork, and problem-solving\n\n"
    "**Examples of Strong Activities:**\n"
    "- Starting a club related to your interests\n"
    "- Conducting an independent research project\n"
    "- Creating a community service initiative addressing a local need\n"
    "- Participating in selective summer programs in your field\n\n"
    "What grade are you in currently? This will help me provide more tailored advice.",
]


def get_mock_response(user_message: str) -> ModelResponse:
    """Canned answer used when no usable API key is configured.

    The generic answer is picked deterministically from the sum of the
    message's code points, so the same question always gets the same reply.
    """
    logger.info("🧪 Using mock response for development")
    lowered = user_message.lower()

    if "project" in lowered and "json" in lowered:
        return ModelResponse(success=True, content=json.dumps(_MOCK_PROJECT_DETAILS), model=MOCK_MODEL)

    if "competition" in lowered and "json" in lowered:
        return ModelResponse(success=True, content=json.dumps(_MOCK_COMPETITION_DETAILS), model=MOCK_MODEL)

    if any(word in lowered for word in ("competition", "olympiad", "contest")):
        return ModelResponse(
            success=True,
            content=_MOCK_COMPETITIONS_ANSWER,
            web_search_attempted=True,
            web_search_results=list(_MOCK_COMPETITION_RESULTS),
            model=MOCK_MODEL,
        )

    index = sum(ord(c) for c in user_message) % len(MOCK_ANSWERS)
    return ModelResponse(success=True, content=MOCK_ANSWERS[index])


# ── HTTP transport ───────────────────────────────────────

def _provider_headers(api_key: str) -> dict[str, str]:
    settings = get_settings()
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    if settings.LLM_PROVIDER == "openrouter":
        headers["HTTP-Referer"] = settings.OPENROUTER_REFERER
        headers["OpenRouter-Completions-Version"] = OPENROUTER_COMPLETIONS_VERSION
    return headers


def _retry_delay(attempt: int) -> float:
    settings = get_settings()
    return min(settings.LLM_INITIAL_RETRY_DELAY * 2 ** attempt, settings.LLM_MAX_RETRY_DELAY)


async def _post_with_retry(client: httpx.AsyncClient, url: str, payload: dict, headers: dict) -> httpx.Response:
    """POST with exponential backoff on 429, 5xx and timeouts.

    Returns the last response once retries are exhausted (even a 5xx).

    Raises:
        ProviderTimeoutError: If every attempt timed out.
    """
    settings = get_settings()
    max_retries = settings.LLM_MAX_RETRIES
    attempt = 0

    while True:
        try:
            response = await client.post(
                url, json=payload, headers=headers, timeout=settings.LLM_REQUEST_TIMEOUT
            )
        except httpx.TimeoutException:
            if attempt >= max_retries:
                raise ProviderTimeoutError(attempt + 1)
            delay = _retry_delay(attempt)
            logger.warning(
                f"⏳ Request timed out after {settings.LLM_REQUEST_TIMEOUT}s. "
                f"Retrying in {delay}s (attempt {attempt + 1}/{max_retries})"
            )
        else:
            retryable = response.status_code == 429 or response.status_code >= 500
            if not retryable or attempt >= max_retries:
                return response
            delay = _retry_delay(attempt)
            logger.warning(
                f"⏳ Request failed with status {response.status_code}. "
                f"Retrying in {delay}s (attempt {attempt + 1}/{max_retries})"
            )

        await asyncio.sleep(delay)
        attempt += 1


def _error_from_response(response: httpx.Response) -> ModelProviderError:
    label = PROVIDER_LABELS.get(get_settings().LLM_PROVIDER, "Provider")
    raw = response.text
    try:
        error_text = (response.json().get("error") or {}).get("message") or raw
    except (ValueError, AttributeError):
        error_text = raw

    logger.error(f"❌ {label} API error ({response.status_code}): {error_text[:500]}")

    if response.status_code == 401:
        return ModelProviderError(
            401,
            f"Authentication error: {error_text[:200]}. "
            f"Please check your {label} API key and ensure it has proper permissions.",
        )

    suffix = "..." if len(error_text) > 200 else ""
    return ModelProviderError(
        response.status_code,
        f"{label} API returned status {response.status_code}: {error_text[:200]}{suffix}",
    )


# ── Tool calls ───────────────────────────────────────────

async def _run_tool_calls(tool_calls: list[dict]) -> tuple[list[dict], list[WebSearchResult]]:
    """Execute `web_search` tool calls; other tools are ignored."""
    tool_messages: list[dict] = []
    collected: list[WebSearchResult] = []

    for call in tool_calls:
        if call.get("type") != "function":
            continue
        function = call.get("function") or {}
        if function.get("name") != "web_search":
            continue

        try:
            args = json.loads(function.get("arguments") or "{}")
        except json.JSONDecodeError:
            args = {}
        query = args.get("query", "")
        logger.info(f"🔧 Tool call: web_search({query!r})")

        # Tavily client is blocking
        results = await asyncio.to_thread(perform_web_search, query)
        collected.extend(results)
        tool_messages.append({
            "role": "tool",
            "tool_call_id": call.get("id"),
            "name": "web_search",
            "content": json.dumps([r.model_dump() for r in results]),
        })

    return tool_messages, collected


# ── Model calls ──────────────────────────────────────────

async def call_model(
    model: str,
    user_message: str,
    pdf_content: str | None = None,
    profile_context: str | None = None,
    enable_web_search: bool = False,
    client: httpx.AsyncClient | None = None,
) -> ModelResponse:
    """Send one chat turn to the configured provider.

    Never raises: every failure is reported as `success=False` with an error
    string, and timeouts are flagged with `is_timeout`.

    Args:
        model: Model id to request (replaced by WEB_BROWSING_MODEL when searching).
        user_message: The student's message.
        pdf_content: Extracted document text added to the system prompt.
        profile_context: Questionnaire profile block added to the system prompt.
        enable_web_search: Declare the `web_search` tool for this call.
        client: Optional shared httpx client.
    """
    settings = get_settings()
    api_key = settings.provider_api_key
    if not is_usable_api_key(api_key):
        return get_mock_response(user_message)

    use_web_search = enable_web_search and settings.WEB_SEARCH_ENABLED
    if use_web_search:
        model = settings.WEB_BROWSING_MODEL
        user_message = f"{SEARCH_INSTRUCTION}\n\n{user_message}"

    messages = [
        {"role": "system", "content": create_system_prompt(pdf_content, profile_context, use_web_search)},
        {"role": "user", "content": user_message},
    ]
    payload: dict = {
        "model": model,
        "messages": messages,
        "temperature": settings.LLM_TEMPERATURE,
        "max_tokens": settings.LLM_MAX_TOKENS,
    }
    if use_web_search:
        payload["tools"] = [WEB_SEARCH_TOOL]
        payload["tool_choice"] = "auto"

    url = settings.provider_api_url
    headers = _provider_headers(api_key)
    logger.info(
        f"🤖 Calling {model} (web search {'on' if use_web_search else 'off'}, key {mask_key(api_key)})"
    )
    logger.debug(f"Request: system=(elided), user={user_message[:100]!r}")

    started = time.monotonic()
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient()

    try:
        response = await _post_with_retry(client, url, payload, headers)
        if response.status_code >= 400:
            raise _error_from_response(response)

        data = response.json()
        choices = data.get("choices") or []
        if not choices:
            return ModelResponse(
                success=False,
                error="The API response format was invalid or empty.",
                web_search_attempted=use_web_search,
            )

        message = choices[0].get("message") or {}
        tool_calls = message.get("tool_calls") or []

        if tool_calls:
            tool_messages, search_results = await _run_tool_calls(tool_calls)
            follow_up = {
                "model": model,
                "messages": [
                    *messages,
                    {"role": "assistant", "content": None, "tool_calls": tool_calls},
                    *tool_messages,
                ],
                "temperature": settings.LLM_TEMPERATURE,
                "max_tokens": settings.LLM_MAX_TOKENS,
            }
            logger.info(f"🔁 Sending follow-up request with {len(tool_messages)} tool result(s)")
            follow_response = await _post_with_retry(client, url, follow_up, headers)
            if follow_response.status_code >= 400:
                raise ModelProviderError(
                    follow_response.status_code,
                    f"Follow-up request failed: {follow_response.status_code} {follow_response.reason_phrase}",
                )

            follow_data = follow_response.json()
            follow_choices = follow_data.get("choices") or []
            if not follow_choices or not follow_choices[0].get("message"):
                return ModelResponse(
                    success=False,
                    error="Invalid follow-up response format",
                    web_search_attempted=True,
                )

            return ModelResponse(
                success=True,
                content=(follow_choices[0]["message"].get("content") or "").strip(),
                web_search_attempted=True,
                web_search_results=search_results or None,
                model=follow_data.get("model") or model,
                response_time_ms=int((time.monotonic() - started) * 1000),
                tool_calls_made=len(tool_calls),
            )

        content = (message.get("content") or "").strip()
        if not content:
            return ModelResponse(
                success=False,
                error="The API returned an empty message with no content.",
                web_search_attempted=use_web_search,
            )

        return ModelResponse(
            success=True,
            content=content,
            web_search_attempted=use_web_search,
            model=data.get("model") or model,
            response_time_ms=int((time.monotonic() - started) * 1000),
        )

    except ProviderTimeoutError as e:
        logger.error(f"❌ {model}: {e.message}")
        return ModelResponse(
            success=False,
            error=f"{e.message}. {e.detail}",
            web_search_attempted=use_web_search,
            is_timeout=True,
        )
    except ModelProviderError as e:
        return ModelResponse(success=False, error=e.message, web_search_attempted=use_web_search)
    except Exception as e:
        logger.error(f"❌ Error while using model {model}: {e}", exc_info=True)
        return ModelResponse(
            success=False,
            error=f"API call failed: {e}",
            web_search_attempted=use_web_search,
        )
    finally:
        if owns_client:
            await client.aclose()


async def get_model_response(
    user_message: str,
    pdf_content: str | None = None,
    profile_context: str | None = None,
    web_search: bool = True,
    client: httpx.AsyncClient | None = None,
) -> ModelResponse:
    """Answer a chat turn with a two-tier model fallback.

    Attempt A uses WEB_BROWSING_MODEL with web search (or PRIMARY_MODEL when
    search is off). If A fails, attempt B is PRIMARY_MODEL without search when
    A searched, otherwise FALLBACK_MODEL. B's result is returned as-is.
    """
    settings = get_settings()
    if not is_usable_api_key(settings.provider_api_key):
        logger.info("Valid API key not configured, using mock response")
        return get_mock_response(user_message)

    enable_web_search = web_search and settings.WEB_SEARCH_ENABLED
    first_model = settings.WEB_BROWSING_MODEL if enable_web_search else settings.PRIMARY_MODEL

    logger.info(f"Using {first_model} with web search {'enabled' if enable_web_search else 'disabled'}")
    response = await call_model(
        first_model, user_message, pdf_content, profile_context, enable_web_search, client=client
    )
    if response.success:
        return response

    if enable_web_search:
        logger.warning(
            f"⚠️ Web search attempt failed: {response.error}. "
            f"Falling back to {settings.PRIMARY_MODEL} without web search"
        )
        return await call_model(
            settings.PRIMARY_MODEL,
            f"{user_message}\n\n{SEARCH_FAILED_NOTE}",
            pdf_content,
            profile_context,
            False,
            client=client,
        )

    logger.warning(f"⚠️ {first_model} failed: {response.error}. Falling back to {settings.FALLBACK_MODEL}")
    return await call_model(
        settings.FALLBACK_MODEL, user_message, pdf_content, profile_context, False, client=client
    )
