"""Tests for the Facebook publisher."""

from urllib.parse import parse_qs

import httpx
import pytest

from app.services.publishers.facebook import FacebookPublisher


class TestFacebookPublisher:
    @pytest.mark.asyncio
    async def test_posts_to_page_feed(self, transport_factory, integration_factory):
        transport = transport_factory(httpx.Response(200, json={"id": "123_456"}))
        integration = integration_factory(
            "facebook", {"accessToken": "page-token"}, {"pageId": "123"}
        )

        async with transport.client() as client:
            result = await FacebookPublisher(client=client).publish("Hi fans", None, integration)

        assert result.ok
        request = transport.requests[0]
        assert str(request.url) == "https://graph.facebook.com/v19.0/123/feed"
        form = parse_qs(request.content.decode())
        assert form == {"message": ["Hi fans"], "access_token": ["page-token"]}

    @pytest.mark.asyncio
    async def test_page_access_token_fallback(self, transport_factory, integration_factory):
        transport = transport_factory(httpx.Response(200, json={"id": "1"}))
        integration = integration_factory(
            "facebook", {"pageAccessToken": "pat"}, {"pageId": "9"}
        )

        async with transport.client() as client:
            result = await FacebookPublisher(client=client, graph_version="v20.0").publish(
                "x", None, integration
            )

        assert result.ok
        assert "/v20.0/9/feed" in str(transport.requests[0].url)
        assert "access_token=pat" in transport.requests[0].content.decode()

    @pytest.mark.asyncio
    async def test_missing_page_id_fails_without_request(
        self, transport_factory, integration_factory
    ):
        transport = transport_factory()
        integration = integration_factory("facebook", {"accessToken": "t"}, {})

        async with transport.client() as client:
            result = await FacebookPublisher(client=client).publish("x", None, integration)

        assert not result.ok
        assert result.error == "Missing Facebook page token or pageId"
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_non_2xx_reports_status(self, transport_factory, integration_factory):
        transport = transport_factory(httpx.Response(400, json={"error": {"code": 190}}))
        integration = integration_factory("facebook", {"accessToken": "t"}, {"pageId": "1"})

        async with transport.client() as client:
            result = await FacebookPublisher(client=client).publish("x", None, integration)

        assert not result.ok
        assert result.error == "Facebook: 400"
