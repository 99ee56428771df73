import asyncio

import httpx
import openai
import pytest

from quickflip.routers.analysis import close_openai_clients, get_openai_client
from quickflip.utils.prompts import BULK_ITEM_ANALYSIS, SINGLE_ITEM_ANALYSIS

REPLY = (
    "ITEM: Red Mug\n"
    "CATEGORY: Home\n"
    "CONDITION: Good\n"
    "DESCRIPTION: A mug.\n"
    "VALUE: $5 - $10\n"
    "ATTRIBUTES: {}"
)


def upstream_error(status_code, body):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status_code, json=body, request=request)
    return openai.APIStatusError("upstream failed", response=response, body=body)


def test_relays_reply_verbatim(client, openai_client):
    openai_client.completions.content = REPLY

    r = client.post("/analyze-single-item-v2", json={"base64Image": "aGVsbG8="})

    assert r.status_code == 200
    assert r.json() == {"content": REPLY}
    assert len(openai_client.completions.calls) == 1


def test_defaults_model_parameters(client, openai_client):
    client.post("/analyze-single-item-v2", json={"base64Image": "aGVsbG8="})

    call = openai_client.completions.calls[0]
    assert call["model"] == "gpt-4o"
    assert call["max_tokens"] == 500
    assert call["temperature"] == 0.3


def test_null_parameters_count_as_omitted(client, openai_client):
    client.post(
        "/analyze-single-item-v2",
        json={"base64Image": "aGVsbG8=", "model": None, "maxTokens": None, "temperature": None},
    )

    call = openai_client.completions.calls[0]
    assert (call["model"], call["max_tokens"], call["temperature"]) == ("gpt-4o", 500, 0.3)


def test_caller_parameters_are_forwarded(client, openai_client):
    client.post(
        "/analyze-single-item-v2",
        json={"base64Image": "aGVsbG8=", "model": "gpt-4o-mini", "maxTokens": 300, "temperature": 0.0},
    )

    call = openai_client.completions.calls[0]
    assert (call["model"], call["max_tokens"], call["temperature"]) == ("gpt-4o-mini", 300, 0.0)


def test_sends_prompt_and_image_as_data_url(client, openai_client):
    client.post("/analyze-single-item-v2", json={"base64Image": "aGVsbG8="})

    messages = openai_client.completions.calls[0]["messages"]
    assert len(messages) == 1
    assert messages[0]["role"] == "user"
    text_part, image_part = messages[0]["content"]
    assert text_part == {"type": "text", "text": SINGLE_ITEM_ANALYSIS}
    assert image_part["type"] == "image_url"
    assert image_part["image_url"]["url"] == "data:image/jpeg;base64,aGVsbG8="


@pytest.mark.parametrize("body", [{}, {"base64Image": ""}, {"base64Image": None}, {"model": "gpt-4o"}])
def test_missing_image_is_rejected_without_upstream_call(client, openai_client, body):
    r = client.post("/analyze-single-item-v2", json=body)

    assert r.status_code == 400
    assert r.json() == {"error": "Missing base64Image parameter"}
    assert openai_client.completions.calls == []


def test_non_json_body_is_rejected(client, openai_client):
    r = client.post(
        "/analyze-single-item-v2",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )

    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request body"
    assert openai_client.completions.calls == []


def test_wrongly_typed_field_is_rejected(client, openai_client):
    r = client.post("/analyze-single-item-v2", json={"base64Image": "aGVsbG8=", "maxTokens": "lots"})

    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Invalid request body"
    assert body["details"][0]["loc"] == ["maxTokens"]
    assert openai_client.completions.calls == []


@pytest.mark.parametrize("image", [123, {"data": "aGVsbG8="}, ["aGVsbG8="]])
def test_non_string_image_is_rejected(client, openai_client, image):
    r = client.post("/analyze-single-item-v2", json={"base64Image": image})

    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request body"
    assert r.json()["details"][0]["loc"] == ["base64Image"]
    assert openai_client.completions.calls == []


def test_upstream_error_is_passed_through(client, openai_client):
    error_body = {"error": {"message": "Rate limit reached", "type": "requests"}}
    openai_client.completions.error = upstream_error(429, error_body)

    r = client.post("/analyze-single-item-v2", json={"base64Image": "aGVsbG8="})

    assert r.status_code == 429
    assert r.json() == {"error": "OpenAI API request failed", "details": error_body}
    assert len(openai_client.completions.calls) == 1


def test_upstream_auth_failure_keeps_its_status(client, openai_client):
    openai_client.completions.error = upstream_error(401, {"error": {"message": "Incorrect API key"}})

    r = client.post("/analyze-single-item-v2", json={"base64Image": "aGVsbG8="})

    assert r.status_code == 401
    assert r.json()["details"]["error"]["message"] == "Incorrect API key"


def test_empty_reply_is_an_error(client, openai_client):
    openai_client.completions.content = ""

    r = client.post("/analyze-single-item-v2", json={"base64Image": "aGVsbG8="})

    assert r.status_code == 500
    assert r.json() == {"error": "No content in OpenAI response"}
    assert "content" not in r.json()


def test_unexpected_failure_returns_message(client, openai_client):
    openai_client.completions.error = RuntimeError("connection reset")

    r = client.post("/analyze-single-item-v2", json={"base64Image": "aGVsbG8="})

    assert r.status_code == 500
    assert r.json() == {"error": "connection reset"}


def test_root_reports_live(client):
    r = client.get("/")
    assert r.json() == {"message": "QuickFlip backend is live"}


def test_openai_client_is_reused(settings):
    first = get_openai_client(settings)
    second = get_openai_client(settings)

    assert first is second
    assert first.max_retries == 0


def test_openai_client_per_key(settings):
    first = get_openai_client(settings)
    settings.openai_api_key = "sk-other"

    assert get_openai_client(settings) is not first


def test_close_openai_clients(settings):
    first = get_openai_client(settings)

    asyncio.run(close_openai_clients())

    assert first.is_closed()
    assert get_openai_client(settings) is not first


BULK_REPLY = """**ITEM_1:**
NAME: Sony WH-1000XM4 Headphones
CONDITION: Good
DESCRIPTION: Noise cancelling over-ear headphones.
VALUE: $120-$160
CATEGORY: Consumer Electronics > Headphones
LOCATION: center

ITEM_2:
NAME: Kindle Paperwhite
CONDITION: Like New
VALUE: $60-$80
CATEGORY: Tablets & eBook Readers
LOCATION: top left

SUMMARY:
TOTAL_COUNT: 2
TOTAL_VALUE: $180-$240
SCENE_DESCRIPTION: A desk with electronics."""


def test_bulk_analysis(client, openai_client):
    openai_client.completions.content = BULK_REPLY

    r = client.post("/analyze-bulk", json={"base64Image": "aGVsbG8="})

    assert r.status_code == 200
    body = r.json()
    assert body["content"] == BULK_REPLY
    assert [item["name"] for item in body["analysis"]["items"]] == ["Sony WH-1000XM4 Headphones", "Kindle Paperwhite"]
    assert body["analysis"]["items"][1]["estimatedValue"] == "$60-$80"
    assert body["analysis"]["totalCount"] == 2
    assert body["analysis"]["totalValue"] == "$180-$240"

    call = openai_client.completions.calls[0]
    assert (call["model"], call["max_tokens"], call["temperature"]) == ("gpt-4o", 1500, 0.3)
    text_part, image_part = call["messages"][0]["content"]
    assert text_part["text"] == BULK_ITEM_ANALYSIS
    assert image_part["image_url"]["url"] == "data:image/jpeg;base64,aGVsbG8="


def test_bulk_analysis_needs_an_image(client, openai_client):
    r = client.post("/analyze-bulk", json={})

    assert r.status_code == 400
    assert r.json() == {"error": "Missing base64Image parameter"}
    assert openai_client.completions.calls == []


def test_bulk_analysis_upstream_error(client, openai_client):
    openai_client.completions.error = upstream_error(500, {"error": {"message": "overloaded"}})

    r = client.post("/analyze-bulk", json={"base64Image": "aGVsbG8="})

    assert r.status_code == 500
    assert r.json()["error"] == "OpenAI API request failed"
