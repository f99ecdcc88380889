"""Tests for the LinkedIn publisher."""

import json

import httpx
import pytest

from app.services.publishers.linkedin import LinkedInPublisher, build_share_body


class TestBuildShareBody:
    def test_ugc_shape(self):
        body = build_share_body("urn:li:person:abc", "Hello")
        assert body["author"] == "urn:li:person:abc"
        assert body["lifecycleState"] == "PUBLISHED"
        share = body["specificContent"]["com.linkedin.ugc.ShareContent"]
        assert share["shareCommentary"] == {"text": "Hello"}
        assert share["shareMediaCategory"] == "NONE"
        assert body["visibility"] == {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"}


class TestLinkedInPublisher:
    @pytest.mark.asyncio
    async def test_creates_ugc_post(self, transport_factory, integration_factory):
        transport = transport_factory(httpx.Response(201, json={"id": "urn:li:share:1"}))
        integration = integration_factory(
            "linkedin", {"accessToken": "li-token"}, {"ownerUrn": "urn:li:organization:7"}
        )

        async with transport.client() as client:
            result = await LinkedInPublisher(client=client).publish("News", [], integration)

        assert result.ok
        request = transport.requests[0]
        assert str(request.url) == "https://api.linkedin.com/v2/ugcPosts"
        assert request.headers["Authorization"] == "Bearer li-token"
        assert json.loads(request.content)["author"] == "urn:li:organization:7"

    @pytest.mark.asyncio
    async def test_missing_owner_urn(self, transport_factory, integration_factory):
        transport = transport_factory()
        integration = integration_factory("linkedin", {"accessToken": "t"}, {})

        async with transport.client() as client:
            result = await LinkedInPublisher(client=client).publish("x", None, integration)

        assert result.error == "Missing LinkedIn accessToken or ownerUrn"
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_error_includes_response_body(self, transport_factory, integration_factory):
        transport = transport_factory(
            httpx.Response(422, text='{"message":"Duplicate post"}')
        )
        integration = integration_factory(
            "linkedin", {"accessToken": "t"}, {"ownerUrn": "urn:li:person:a"}
        )

        async with transport.client() as client:
            result = await LinkedInPublisher(client=client).publish("x", None, integration)

        assert not result.ok
        assert result.error == 'LinkedIn: {"message":"Duplicate post"}'

    @pytest.mark.asyncio
    async def test_long_error_body_truncated(self, transport_factory, integration_factory):
        transport = transport_factory(httpx.Response(500, text="e" * 2000))
        integration = integration_factory(
            "linkedin", {"accessToken": "t"}, {"ownerUrn": "urn:li:person:a"}
        )

        async with transport.client() as client:
            result = await LinkedInPublisher(client=client).publish("x", None, integration)

        assert result.error.startswith("LinkedIn: eee")
        assert result.error.endswith("...")
        assert len(result.error) < 520
