"""Detection of the `//ai` marker in LanguageTool check requests."""

import json
import logging
from collections.abc import Mapping

from lt_ai_mixer.types import TriggerResult

logger = logging.getLogger(__name__)

MARKER = "//ai"


def _split_marker(text: str) -> TriggerResult:
    # Detection looks at the trimmed suffix, stripping cuts at the last occurrence.
    if not text.strip().endswith(MARKER):
        return TriggerResult(text=text, triggered=False)
    return TriggerResult(text=text[: text.rfind(MARKER)], triggered=True)


def _text_from_data(data: str) -> str:
    try:
        payload = json.loads(data)
    except ValueError:
        logger.debug("Unparseable 'data' parameter: %.200s", data)
        return ""
    if not isinstance(payload, dict):
        return ""
    text = payload.get("text")
    return text if isinstance(text, str) else ""


def classify(form: Mapping[str, str]) -> TriggerResult:
    """Extract the text of a check request and look for the trailing marker.

    ``text`` wins over ``data``; ``data`` is a JSON document carrying a
    ``text`` key. Returns ``missing=True`` when neither field is present and
    an empty, untriggered result when ``data`` holds no usable text.
    """
    text = form.get("text") or ""
    data = form.get("data") or ""

    if not text and not data:
        logger.warning("Missing required text or data parameters")
        return TriggerResult(missing=True)

    if text:
        return _split_marker(text)

    data_text = _text_from_data(data)
    if not data_text:
        return TriggerResult()
    return _split_marker(data_text)
