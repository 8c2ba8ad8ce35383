"""Tests for the /chat endpoint (FastAPI TestClient, dependencies overridden)."""

from __future__ import annotations

import json

import httpx

from app.domain.models.chat import StreamFrame
from app.domain.services.constants import (
    MSG_CONFIG_ERROR,
    MSG_INTERNAL_ERROR,
    MSG_INVALID_BODY,
    MSG_NO_MESSAGES,
    MSG_QUOTA_EXHAUSTED,
    MSG_RATE_LIMITED,
)
from app.domain.services.embedding_svc import embed
from app.domain.services.llm_relay import failure_for_status, upstream_failure
from app.domain.services.prompts import BASE_SYSTEM_PROMPT
from tests.fakes import FakeRelay, FakeSearchRepo, split_every, sse

CROISSANT_ROW = {
    "id": "c1",
    "name": "Croissant Butter",
    "description": "Croissant renyah dengan lapisan butter premium",
    "price": 18000,
    "badge": "Bestseller",
    "similarity": 0.81,
}

USER_ONLY = {"messages": [{"role": "user", "content": "berapa harga croissant?"}]}

ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"


def _frames(body: bytes) -> list[str]:
    out = []
    for block in body.decode("utf-8").split("\n\n"):
        if block.startswith("data: "):
            out.append(json.loads(block[len("data: "):])["choices"][0]["delta"]["content"])
    return out


# ------------------------------------------------------------------
# preflight
# ------------------------------------------------------------------


def test_options_returns_cors_headers(make_client):
    client = make_client(relay=FakeRelay())
    resp = client.options("/chat")

    assert resp.status_code == 200
    assert resp.content == b""
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.headers["access-control-allow-headers"] == ALLOW_HEADERS


# ------------------------------------------------------------------
# streaming success
# ------------------------------------------------------------------


def test_end_to_end_grounded_stream(make_client):
    relay = FakeRelay(chunks=split_every(sse("Hal", "lo ", "dunia"), 5))
    repo = FakeSearchRepo(rows=[CROISSANT_ROW])
    client = make_client(relay=relay, search_repo=repo)

    resp = client.post("/chat", json=USER_ONLY)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "".join(_frames(resp.content)) == "Hallo dunia"
    assert resp.content == b"".join(StreamFrame.of(c).to_sse() for c in ("Hal", "lo ", "dunia"))

    system_prompt, history = relay.calls[0]
    assert "Croissant Butter" in system_prompt
    assert "- Croissant Butter (Bestseller): Croissant renyah dengan lapisan butter premium - Rp 18.000" in system_prompt
    assert [m.content for m in history] == ["berapa harga croissant?"]
    assert relay.stream.closed is True


def test_history_is_forwarded_unchanged_and_last_user_turn_is_matched(make_client):
    relay = FakeRelay(chunks=[sse("ok")])
    repo = FakeSearchRepo(rows=[])
    client = make_client(relay=relay, search_repo=repo)
    messages = [
        {"role": "user", "content": "halo"},
        {"role": "assistant", "content": "Halo! 👋"},
        {"role": "user", "content": "ada sourdough?"},
        {"role": "assistant", "content": "Ada!"},
    ]

    resp = client.post("/chat", json={"messages": messages})

    assert resp.status_code == 200
    _, history = relay.calls[0]
    assert [{"role": m.role, "content": m.content} for m in history] == messages
    assert repo.calls[0]["query_embedding"] == embed("ada sourdough?")


def test_ndjson_provider_is_normalized(make_client, settings):
    ndjson_settings = settings.model_copy(update={"LLM_PROVIDER": "ndjson"})
    body = (
        b'{"message":{"content":"Hal"},"done":false}\n'
        b'{"message":{"content":"lo dunia"},"done":false}\n'
        b'{"message":{"content":""},"done":true}\n'
    )
    relay = FakeRelay(chunks=split_every(body, 9))
    client = make_client(relay=relay, search_repo=FakeSearchRepo(), app_settings=ndjson_settings)

    resp = client.post("/chat", json=USER_ONLY)

    assert resp.status_code == 200
    assert _frames(resp.content) == ["Hal", "lo dunia"]


def test_provider_dropping_mid_stream_yields_partial_stream(make_client):
    relay = FakeRelay(
        chunks=[sse("Hal", "lo ", done=False)],
        stream_error=httpx.RemoteProtocolError("peer closed connection"),
    )
    client = make_client(relay=relay, search_repo=FakeSearchRepo())

    resp = client.post("/chat", json=USER_ONLY)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    assert _frames(resp.content) == ["Hal", "lo "]
    assert relay.stream.closed is True


def test_retrieval_failure_degrades_to_base_prompt(make_client):
    relay = FakeRelay(chunks=[sse("Halo")])
    client = make_client(relay=relay, search_repo=FakeSearchRepo(error=RuntimeError("store down")))

    resp = client.post("/chat", json=USER_ONLY)

    assert resp.status_code == 200
    assert relay.calls[0][0] == BASE_SYSTEM_PROMPT


def test_missing_store_settings_is_configuration_error(make_client, settings):
    relay = FakeRelay(chunks=[sse("never")])
    no_store = settings.model_copy(update={"SUPABASE_URL": None, "SUPABASE_SERVICE_ROLE_KEY": None})
    client = make_client(relay=relay, search_repo=None, app_settings=no_store)

    resp = client.post("/chat", json=USER_ONLY)

    assert resp.status_code == 500
    assert resp.json() == {"error": MSG_CONFIG_ERROR}
    assert "SUPABASE" not in resp.text
    assert relay.calls == []


def test_history_without_user_turn_is_relayed_ungrounded(make_client):
    relay = FakeRelay(chunks=[sse("Halo")])
    repo = FakeSearchRepo(rows=[CROISSANT_ROW])
    client = make_client(relay=relay, search_repo=repo)

    resp = client.post("/chat", json={"messages": [{"role": "assistant", "content": "Halo!"}]})

    assert resp.status_code == 200
    assert repo.calls == []
    assert relay.calls[0][0] == BASE_SYSTEM_PROMPT


# ------------------------------------------------------------------
# error mapping
# ------------------------------------------------------------------


def test_upstream_429_is_mirrored(make_client):
    client = make_client(relay=FakeRelay(failure=failure_for_status(429)), search_repo=FakeSearchRepo())
    resp = client.post("/chat", json=USER_ONLY)

    assert resp.status_code == 429
    assert resp.json() == {"error": MSG_RATE_LIMITED}
    assert resp.headers["access-control-allow-origin"] == "*"


def test_upstream_402_is_mirrored(make_client):
    client = make_client(relay=FakeRelay(failure=failure_for_status(402)), search_repo=FakeSearchRepo())
    resp = client.post("/chat", json=USER_ONLY)

    assert resp.status_code == 402
    assert resp.json() == {"error": MSG_QUOTA_EXHAUSTED}


def test_upstream_network_failure_is_500(make_client):
    client = make_client(relay=FakeRelay(failure=upstream_failure()), search_repo=FakeSearchRepo())
    resp = client.post("/chat", json=USER_ONLY)

    assert resp.status_code == 500
    assert resp.json()["error"]


def test_missing_provider_key_is_configuration_error(make_client, settings):
    relay = FakeRelay(chunks=[sse("never")])
    no_key = settings.model_copy(update={"LLM_API_KEY": None})
    client = make_client(relay=relay, search_repo=FakeSearchRepo(), app_settings=no_key)

    resp = client.post("/chat", json=USER_ONLY)

    assert resp.status_code == 500
    assert resp.json() == {"error": MSG_CONFIG_ERROR}
    assert "LLM_API_KEY" not in resp.text
    assert relay.calls == []


def test_unexpected_error_is_opaque_500(make_client):
    relay = FakeRelay(error=RuntimeError("internal id 42 exploded"))
    client = make_client(relay=relay, search_repo=FakeSearchRepo())

    resp = client.post("/chat", json=USER_ONLY)

    assert resp.status_code == 500
    assert resp.json() == {"error": MSG_INTERNAL_ERROR}
    assert "exploded" not in resp.text


def test_invalid_json_body_is_400(make_client):
    client = make_client(relay=FakeRelay())
    resp = client.post("/chat", content=b"{not json", headers={"content-type": "application/json"})

    assert resp.status_code == 400
    assert resp.json() == {"error": MSG_INVALID_BODY}


def test_unknown_role_is_400(make_client):
    client = make_client(relay=FakeRelay())
    resp = client.post("/chat", json={"messages": [{"role": "robot", "content": "beep"}]})

    assert resp.status_code == 400


def test_empty_messages_is_400(make_client):
    relay = FakeRelay()
    client = make_client(relay=relay)
    resp = client.post("/chat", json={"messages": []})

    assert resp.status_code == 400
    assert resp.json() == {"error": MSG_NO_MESSAGES}
    assert relay.calls == []
