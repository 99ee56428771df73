import json
import logging
import threading
from typing import Dict, Optional, Tuple
from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from openai import APIStatusError, AsyncOpenAI
from pydantic import ValidationError
from quickflip.config import Settings, get_settings
from quickflip.models.analysis import (
    BULK_MAX_TOKENS,
    AnalyzeRequest,
    AnalyzeResponse,
    BulkAnalyzeResponse,
    ErrorResponse,
)
from quickflip.utils.item_parser import parse_bulk_analysis
from quickflip.utils.prompts import bulk_item_messages, single_item_messages

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Image Analysis"])

# One client (and connection pool) per key and endpoint for the life of the process.
_clients: Dict[Tuple[str, Optional[str]], AsyncOpenAI] = {}
_clients_lock = threading.Lock()

def get_openai_client(settings: Settings = Depends(get_settings)) -> AsyncOpenAI:
    # An unset key still builds a client; the upstream 401 is passed through like any other failure.
    key = (settings.openai_api_key or "", settings.openai_base_url)
    with _clients_lock:
        client = _clients.get(key)
        if client is None:
            client = AsyncOpenAI(api_key=key[0], base_url=key[1], max_retries=0)
            _clients[key] = client
    return client

async def close_openai_clients():
    with _clients_lock:
        clients = list(_clients.values())
        _clients.clear()
    for client in clients:
        await client.close()

def error_response(status_code: int, error: str, details=None) -> JSONResponse:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)

def upstream_error_body(exc: APIStatusError):
    try:
        return exc.response.json()
    except ValueError:
        return exc.response.text

class AnalysisFailed(Exception):
    """Ends a request with an {"error", "details"} body."""

    def __init__(self, status_code: int, error: str, details=None):
        self.status_code = status_code
        self.error = error
        self.details = details
        super().__init__(error)

    def response(self) -> JSONResponse:
        return error_response(self.status_code, self.error, self.details)

async def read_image_request(request: Request) -> AnalyzeRequest:
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise AnalysisFailed(400, "Invalid request body", [{"msg": "Body must be valid JSON"}])
    if not isinstance(body, dict):
        raise AnalysisFailed(400, "Invalid request body", [{"msg": "Body must be a JSON object"}])

    try:
        data = AnalyzeRequest.model_validate(body)
    except ValidationError as e:
        if not body.get("base64Image"):
            raise AnalysisFailed(400, "Missing base64Image parameter")
        raise AnalysisFailed(400, "Invalid request body", jsonable_encoder(e.errors(include_url=False)))

    if not data.base64_image:
        raise AnalysisFailed(400, "Missing base64Image parameter")
    return data

async def complete(client: AsyncOpenAI, messages: list, params: dict) -> str:
    """Text of the first choice; upstream failures and empty replies raise AnalysisFailed."""
    try:
        completion = await client.chat.completions.create(messages=messages, **params)
    except APIStatusError as e:
        details = upstream_error_body(e)
        logger.error("OpenAI API error (%s): %s", e.status_code, details)
        raise AnalysisFailed(e.status_code, "OpenAI API request failed", details)

    choices = completion.choices or []
    content = choices[0].message.content if choices and choices[0].message else None
    if not content:
        logger.error("OpenAI response had no message content")
        raise AnalysisFailed(500, "No content in OpenAI response")
    return content

@router.post(
    "/analyze-single-item-v2",
    response_model=AnalyzeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze_single_item(request: Request, client: AsyncOpenAI = Depends(get_openai_client)):
    """
    Forward one base64 photo and the fixed six-field prompt to the vision model
    and relay its raw text reply. The reply is not parsed here.
    """
    try:
        data = await read_image_request(request)
        params = data.upstream_params()
        logger.info(
            "Analyzing image (%d base64 chars) with model=%s max_tokens=%s temperature=%s",
            len(data.base64_image), params["model"], params["max_tokens"], params["temperature"],
        )
        content = await complete(client, single_item_messages(data.base64_image), params)
        return {"content": content}

    except AnalysisFailed as e:
        return e.response()
    except Exception as e:
        logger.exception("Image analysis failed")
        return error_response(500, str(e) or e.__class__.__name__)

@router.post(
    "/analyze-bulk",
    response_model=BulkAnalyzeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze_bulk(request: Request, client: AsyncOpenAI = Depends(get_openai_client)):
    """
    Find every sellable item in one photo. Returns the raw reply and the items read from it.
    """
    try:
        data = await read_image_request(request)
        params = data.upstream_params(max_tokens=BULK_MAX_TOKENS)
        logger.info("Bulk analysis (%d base64 chars) with model=%s", len(data.base64_image), params["model"])
        content = await complete(client, bulk_item_messages(data.base64_image), params)
        analysis = parse_bulk_analysis(content)
        logger.info("Bulk analysis found %d items", len(analysis.items))
        return {"content": content, "analysis": analysis}

    except AnalysisFailed as e:
        return e.response()
    except Exception as e:
        logger.exception("Bulk analysis failed")
        return error_response(500, str(e) or e.__class__.__name__)
