"""Stashboard client OAuth1 request signing.

Plugs oauthlib's OAuth 1.0a signer into httpx's auth flow so every request
sent through an ``httpx.Client`` carries a signed ``Authorization`` header.
"""

from typing import Generator

import httpx
from oauthlib.oauth1 import Client as OAuth1Signer

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class OAuth1Auth(httpx.Auth):
    """HMAC-SHA1 signing with a consumer key pair and an access token pair."""

    # Form parameters are part of the signature base string.
    requires_request_body = True

    def __init__(
        self,
        client_key: str,
        client_secret: str,
        resource_owner_key: str,
        resource_owner_secret: str,
    ):
        self._signer = OAuth1Signer(
            client_key,
            client_secret=client_secret,
            resource_owner_key=resource_owner_key,
            resource_owner_secret=resource_owner_secret,
        )

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        body = None
        headers = None
        content_type = request.headers.get("Content-Type", "")
        if content_type.startswith(FORM_CONTENT_TYPE) and request.content:
            body = request.content.decode("utf-8")
            headers = {"Content-Type": FORM_CONTENT_TYPE}

        _, signed_headers, _ = self._signer.sign(
            str(request.url), request.method, body=body, headers=headers
        )
        request.headers["Authorization"] = signed_headers["Authorization"]
        yield request
