import asyncio
import json

import pytest


class SettingsStub:
    openai_api_key = None
    deepseek_api_key = None
    google_api_key = None
    openai_base_url = "https://api.openai.com/v1"
    deepseek_base_url = "https://api.deepseek.com/v1"
    gemini_base_url = "https://generativelanguage.googleapis.com/v1beta"
    http_timeout = 1.0
    default_mode = "standard"
    triple_run_count = 3


class FakeResponse:
    def __init__(self, status_code=200, body=None, reason_phrase=""):
        self.status_code = status_code
        self._body = body
        self.reason_phrase = reason_phrase

    def json(self):
        if isinstance(self._body, (dict, list)):
            return self._body
        return json.loads(self._body or "")


class FakeHttp:
    """记录所有请求，并按顺序返回预置的响应（或抛出预置的异常）。"""

    def __init__(self):
        self.responses = []
        self.requests = []

    def queue(self, *items):
        self.responses.extend(items)

    def client_class(self):
        http = self

        class Client:
            def __init__(self, *a, **kw):
                http.client_kwargs = kw

            async def __aenter__(self):
                return self

            async def __aexit__(self, *a):
                return False

            async def post(self, url, **kw):
                http.requests.append((url, kw))
                item = http.responses.pop(0)
                if isinstance(item, Exception):
                    raise item
                return item

        return Client


class FakeAdapter:
    """调度器测试用的适配器：返回固定文本或抛出固定异常。"""

    def __init__(self, name, outputs=None, error=None):
        self.name = name
        self._outputs = outputs
        self._error = error
        self.calls = []

    async def call(self, history, run_count, model, credential):
        self.calls.append({"history": list(history), "run_count": run_count, "model": model, "credential": credential})
        await asyncio.sleep(0)
        if self._error is not None:
            raise self._error
        if self._outputs is not None:
            return list(self._outputs)
        return [f"{self.name}-{i}" for i in range(run_count)]


@pytest.fixture
def settings_stub():
    return SettingsStub()


@pytest.fixture
def fake_http(monkeypatch):
    http = FakeHttp()
    monkeypatch.setattr("httpx.AsyncClient", http.client_class())
    return http
