"""
Chat feature: "Thinking" steps shown by the UI while a response is pending.

Keyword lookup table instead of an if/else chain; order of the table is the
order steps are shown in.
"""

THINKING_STEP_MAP: dict[str, str] = {
    # Sports and athletics
    "sport": "Finding sports and athletic activities",
    "athletic": "Finding sports and athletic activities",
    "team": "Identifying team-based opportunities",
    # Leadership
    "leadership": "Identifying leadership opportunities",
    "president": "Identifying leadership opportunities",
    "club": "Identifying leadership opportunities",
    "lead": "Exploring leadership pathways",
    # Community service
    "volunteer": "Exploring community service options",
    "community": "Exploring community service options",
    "service": "Exploring community service options",
    "help": "Finding ways to contribute to communities",
    # Research and academics
    "research": "Exploring research opportunities",
    "science": "Exploring research opportunities",
    "lab": "Exploring research opportunities",
    "study": "Finding academic enrichment opportunities",
    "academic": "Finding academic enrichment opportunities",
    # Arts and creativity
    "art": "Finding artistic and creative activities",
    "music": "Finding artistic and creative activities",
    "creative": "Finding artistic and creative activities",
    "perform": "Exploring performing arts opportunities",
    "design": "Finding design-related activities",
    # Career and internships
    "internship": "Researching internship opportunities",
    "job": "Researching internship opportunities",
    "work": "Researching internship opportunities",
    "career": "Exploring career preparation activities",
    "professional": "Finding professional development opportunities",
    # College-specific
    "college": "Analyzing college requirements",
    "admission": "Reviewing admission strategies",
    "application": "Optimizing application strategy",
    "essay": "Finding experiences for compelling essays",
}

FIRST_STEP = "Processing your question..."
PROFILE_STEP = "Analyzing your profile data"
DEFAULT_STEP = "Preparing personalized recommendations"
LAST_STEP = "Generating your response"


def generate_thinking_steps(message: str, pdf_content: str | None = None) -> list[str]:
    """Build the step list for a message.

    Matching is a plain substring test on the lower-cased message, so "leadership"
    also matches "lead". Duplicate step texts are shown once.
    """
    lowered = (message or "").lower()
    steps = [FIRST_STEP]

    if pdf_content:
        steps.append(PROFILE_STEP)

    matched: list[str] = []
    for keyword, step in THINKING_STEP_MAP.items():
        if keyword in lowered and step not in matched:
            matched.append(step)

    steps.extend(matched or [DEFAULT_STEP])
    steps.append(LAST_STEP)
    return steps
