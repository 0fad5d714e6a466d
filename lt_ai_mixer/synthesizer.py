"""Builds a LanguageTool-shaped check report around an LLM reply."""

from lt_ai_mixer.trigger import MARKER
from lt_ai_mixer.types import (
    CheckResponse,
    Language,
    Match,
    MatchContext,
    Replacement,
    Rule,
    RuleCategory,
    Software,
)

SOFTWARE_NAME = "LT-AI-mixer"

MARKER_LENGTH = len(MARKER)


def build_check_response(clean_text: str, completion: str) -> CheckResponse:
    """Wrap ``completion`` as the single replacement of a synthetic match.

    Offsets are counted in code points, which is what ``len`` gives for
    ``str``. The match spans the cleaned text plus the marker; the context
    points at where the marker was.
    """
    text_length = len(clean_text)

    match = Match(
        message="Reply from LLM",
        short_message="AI Response",
        replacements=[Replacement(value=completion)],
        offset=0,
        length=text_length + MARKER_LENGTH,
        context=MatchContext(text=clean_text, offset=text_length, length=MARKER_LENGTH),
        rule=Rule(
            id="AI_RESPONSE",
            description="Response from AI API",
            issue_type="recommendations",
            category=RuleCategory(id="AI", name="AI Responses"),
        ),
    )

    return CheckResponse(
        software=Software(name=SOFTWARE_NAME, api_version=1),
        language=Language(name="English", code="en"),
        matches=[match],
    )


def render_check_response(response: CheckResponse) -> dict:
    return response.model_dump(by_alias=True)
