import asyncio
import json

import pytest

from page_translator.core.translator import BaseTranslator
from page_translator.core.errors import NetworkError


class FakeResponse:
    def __init__(self, status=200, body=None):
        self.status = status
        if body is None:
            body = {"choices": [{"message": {"content": "你好世界"}}]}
        self._body = body if isinstance(body, str) else json.dumps(body)

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession and records every POST."""

    def __init__(self, response=None, exc=None):
        self.response = response or FakeResponse()
        self.exc = exc
        self.calls = []
        self.closed = False

    def post(self, url, data=None, headers=None):
        self.calls.append({"url": url, "data": data, "headers": headers})
        if self.exc is not None:
            raise self.exc
        return self.response

    def payload(self, index=0):
        return json.loads(self.calls[index]["data"])

    async def close(self):
        self.closed = True


class FakeTranslator(BaseTranslator):
    """
    Upper-cases its input. Tracks how many calls overlap and can fail
    any text containing one of the `fail_on` markers.
    """

    def __init__(self, delay=0.0, fail_on=(), delays=None):
        super().__init__()
        self.delay = delay
        self.delays = delays or {}
        self.fail_on = tuple(fail_on)
        self.calls = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def translate(self, text, api_key, target_language="zh"):
        self.calls.append((text, api_key, target_language))
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            delay = self.delay
            for marker, marker_delay in self.delays.items():
                if marker in text:
                    delay = marker_delay
            await asyncio.sleep(delay)
            if any(marker in text for marker in self.fail_on):
                raise NetworkError("Network error: connection refused")
            return text.upper().strip()
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_translator():
    return FakeTranslator()


@pytest.fixture
def settings_path(tmp_path):
    return str(tmp_path / "settings.json")


@pytest.fixture
def make_translator():
    return FakeTranslator


@pytest.fixture
def make_session():
    def _make(status=200, body=None, exc=None):
        return FakeSession(response=FakeResponse(status=status, body=body), exc=exc)
    return _make
