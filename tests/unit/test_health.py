"""Tests for the /health endpoint."""

from __future__ import annotations


class _Repo:
    def __init__(self, error=None):
        self.error = error

    async def ping(self):
        if self.error:
            raise self.error


def test_health_ok_when_store_and_llm_configured(make_client):
    resp = make_client(repo=_Repo()).get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["checks"]["store"] == "ok"
    assert body["checks"]["llm_configured"] is True


def test_health_store_skipped_when_not_configured(make_client):
    body = make_client(repo=None).get("/health").json()
    assert body["checks"]["store"] == "skipped"
    assert body["status"] == "ok"


def test_health_reports_store_error(make_client):
    body = make_client(repo=_Repo(error=RuntimeError("down"))).get("/health").json()
    assert body["checks"]["store"] == "error: down"
    assert body["status"] == "error"


def test_health_flags_missing_llm_key(make_client, settings):
    no_key = settings.model_copy(update={"LLM_API_KEY": None})
    body = make_client(repo=_Repo(), app_settings=no_key).get("/health").json()
    assert body["checks"]["llm_configured"] is False
    assert body["status"] == "error"
