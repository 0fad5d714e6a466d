"""Catch-all dispatcher.

POST /v2/check with a text ending in `//ai` → completion endpoint, answered as
a LanguageTool check report. Everything else → LanguageTool upstream.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from lt_ai_mixer.completion import CompletionClient
from lt_ai_mixer.forwarder import Forwarder
from lt_ai_mixer.synthesizer import build_check_response, render_check_response
from lt_ai_mixer.trigger import classify

router = APIRouter()
logger = logging.getLogger(__name__)

CHECK_PATH = "/v2/check"

MISSING_TEXT_MESSAGE = "Missing 'text' or 'data' parameter"

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def first_values(items: list[tuple[str, str]]) -> dict[str, str]:
    values: dict[str, str] = {}
    for key, value in items:
        values.setdefault(key, value)
    return values


async def read_form_items(request: Request) -> list[tuple[str, str]]:
    """Body form fields followed by query parameters; file parts are skipped."""
    form = await request.form()
    items = [(key, value) for key, value in form.multi_items() if not isinstance(value, UploadFile)]
    items.extend(request.query_params.multi_items())
    return items


async def handle_check(
    form_items: list[tuple[str, str]],
    completion: CompletionClient,
) -> Response | None:
    """Answer a check request from the model, or return None to forward it."""
    form = first_values(form_items)
    result = classify(form)

    logger.debug(
        "Form parameters: text_param=%r data_param=%r all_params=%r triggered=%s",
        form.get("text", ""),
        form.get("data", ""),
        form_items,
        result.triggered,
    )

    if result.missing:
        return PlainTextResponse(MISSING_TEXT_MESSAGE, status_code=400)
    if not result.text:
        logger.warning("No usable text in check request: triggered=%s", result.triggered)
        return PlainTextResponse(MISSING_TEXT_MESSAGE, status_code=400)
    if not result.triggered:
        return None

    answer = await completion.complete(result.text)
    if not answer.answered:
        logger.warning(
            "No completion for check request: status=%s detail=%s",
            answer.status.value,
            answer.detail,
        )
        return PlainTextResponse("No completion available", status_code=502)

    body = render_check_response(build_check_response(result.text, answer.text))
    logger.debug("Response in LanguageTool API format: %s", body)
    return JSONResponse(body, status_code=200)


@router.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
async def dispatch(request: Request, path: str):
    try:
        form_items = await read_form_items(request)
    except (HTTPException, MultiPartException) as exc:
        logger.error("Form parsing error: path=%s error=%s", request.url.path, exc)
        return PlainTextResponse("Bad Request", status_code=400)

    if request.method == "POST" and request.url.path == CHECK_PATH:
        handled = await handle_check(form_items, request.app.state.completion)
        if handled is not None:
            return handled

    forwarder: Forwarder = request.app.state.forwarder
    return await forwarder.forward(request, form_items)
