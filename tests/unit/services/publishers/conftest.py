"""Helpers for publisher tests: record requests through httpx.MockTransport."""

from uuid import uuid4

import httpx
import pytest

from app.jobs.models import Integration


class RecordingTransport:
    """Serves queued responses and records every request."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"unexpected request {request.method} {request.url}")
        return self.responses.pop(0)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def transport_factory():
    return RecordingTransport


@pytest.fixture
def integration_factory():
    def make(platform, credentials=None, configuration=None):
        return Integration(
            id=uuid4(),
            user_id=uuid4(),
            platform=platform,
            credentials=credentials or {},
            configuration=configuration or {},
        )

    return make
