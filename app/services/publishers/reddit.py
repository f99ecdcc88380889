"""Reddit publisher (script-app password grant + self post)."""

from typing import Optional, Sequence

import httpx

from app.jobs.models import Integration
from app.services.publishers.base import HttpPublisher, PublishResult, is_success

TITLE_MAX_CHARS = 100


class RedditPublisher(HttpPublisher):
    """
    Submits a self post to a subreddit.

    Two requests per publish:
    1. OAuth password grant against www.reddit.com for a bearer token
    2. /api/submit on oauth.reddit.com with kind=self
    """

    platform = "reddit"
    TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
    SUBMIT_URL = "https://oauth.reddit.com/api/submit"

    async def publish(
        self,
        content: str,
        media_urls: Optional[Sequence[str]],
        integration: Integration,
    ) -> PublishResult:
        creds = integration.credentials or {}
        client_id = creds.get("clientId")
        client_secret = creds.get("clientSecret")
        username = creds.get("username")
        password = creds.get("password")
        user_agent = creds.get("userAgent")
        subreddit = (integration.configuration or {}).get("subreddit")
        if not all([client_id, client_secret, username, password, user_agent, subreddit]):
            return PublishResult.failure("Missing Reddit credentials or subreddit")

        async with self._http() as client:
            token_resp = await client.post(
                self.TOKEN_URL,
                auth=httpx.BasicAuth(client_id, client_secret),
                headers={"User-Agent": user_agent},
                data={"grant_type": "password", "username": username, "password": password},
            )
            if not is_success(token_resp):
                return self._http_failure("Reddit token", token_resp)

            # Reddit answers bad grants with 200 and {"error": "..."}
            token_body = token_resp.json()
            access_token = token_body.get("access_token")
            if not access_token:
                error = token_body.get("error", "no access_token in response")
                return PublishResult.failure(f"Reddit token: {error}")

            submit_resp = await client.post(
                self.SUBMIT_URL,
                headers={
                    "Authorization": f"bearer {access_token}",
                    "User-Agent": user_agent,
                },
                data={
                    "sr": subreddit,
                    "kind": "self",
                    "title": build_title(content),
                    "text": content,
                    "api_type": "json",
                },
            )

        if not is_success(submit_resp):
            return self._http_failure("Reddit post", submit_resp)

        errors = submit_errors(submit_resp)
        if errors:
            return PublishResult.failure(f"Reddit post: {errors}")
        return PublishResult.success()


def build_title(content: str) -> str:
    """First 100 characters of the content, or a placeholder for empty posts."""
    return content[:TITLE_MAX_CHARS] or "Post"


def submit_errors(response: httpx.Response) -> Optional[str]:
    """Extract api_type=json errors (returned with HTTP 200)."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    errors = (body.get("json") or {}).get("errors") or []
    if not errors:
        return None
    return "; ".join(
        " ".join(str(part) for part in err) if isinstance(err, list) else str(err)
        for err in errors
    )
