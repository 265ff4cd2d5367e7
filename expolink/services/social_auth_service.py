"""
Social provider token verification.

The mobile app performs the OAuth dance and sends us the provider token;
we resolve it server-side to a verified profile:

- google:   OAuth2 access token → userinfo endpoint
- facebook: user access token   → Graph API /me
- apple:    identity token (JWT) → verified against Apple's JWKS
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from jose import jwt

from expolink.core.config import settings

logger = logging.getLogger(__name__)


class SocialAuthError(Exception):
    """The provider rejected the token or returned an unusable profile."""


@dataclass
class SocialProfile:
    provider: str
    provider_id: str
    email: str
    name: str | None = None
    avatar: str | None = None


class SocialAuthService:
    """Resolves provider tokens to SocialProfile instances."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    async def fetch_profile(self, provider: str, token: str) -> SocialProfile:
        """
        Verify a provider token.

        Raises:
            SocialAuthError, httpx.HTTPError, jose.JWTError: verification failed.
        """
        handlers = {
            "google": self._google,
            "facebook": self._facebook,
            "apple": self._apple,
        }
        handler = handlers.get(provider)
        if handler is None:
            raise SocialAuthError(f"Unsupported provider: {provider}")

        if self._client is not None:
            profile = await handler(self._client, token)
        else:
            async with httpx.AsyncClient(timeout=settings.SOCIAL_HTTP_TIMEOUT) as client:
                profile = await handler(client, token)

        if not profile.email:
            raise SocialAuthError("The provider did not share an email address.")
        logger.info("Verified %s token for provider_id=%s", provider, profile.provider_id)
        return profile

    # -----------------------------------------------------------------------
    # Providers
    # -----------------------------------------------------------------------

    async def _google(self, client: httpx.AsyncClient, token: str) -> SocialProfile:
        response = await client.get(
            settings.GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {token}"},
        )
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        return SocialProfile(
            provider="google",
            provider_id=str(data["sub"]),
            email=(data.get("email") or "").lower(),
            name=data.get("name"),
            avatar=data.get("picture"),
        )

    async def _facebook(self, client: httpx.AsyncClient, token: str) -> SocialProfile:
        response = await client.get(
            settings.FACEBOOK_GRAPH_URL,
            params={"fields": "id,name,email,picture.type(large)", "access_token": token},
        )
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        picture = (data.get("picture") or {}).get("data") or {}
        return SocialProfile(
            provider="facebook",
            provider_id=str(data["id"]),
            email=(data.get("email") or "").lower(),
            name=data.get("name"),
            avatar=picture.get("url"),
        )

    async def _apple(self, client: httpx.AsyncClient, token: str) -> SocialProfile:
        header = jwt.get_unverified_header(token)
        response = await client.get(settings.APPLE_KEYS_URL)
        response.raise_for_status()
        keys = response.json().get("keys", [])
        key = next((k for k in keys if k.get("kid") == header.get("kid")), None)
        if key is None:
            raise SocialAuthError("Unknown Apple signing key.")

        claims = jwt.decode(
            token,
            key,
            algorithms=[header.get("alg", "RS256")],
            audience=settings.APPLE_CLIENT_ID or None,
            issuer=settings.APPLE_ISSUER,
            options={"verify_aud": bool(settings.APPLE_CLIENT_ID)},
        )
        # Apple never returns a name or picture in the identity token
        return SocialProfile(
            provider="apple",
            provider_id=str(claims["sub"]),
            email=(claims.get("email") or "").lower(),
        )


def get_social_auth_service() -> SocialAuthService:
    """Dependency that constructs SocialAuthService."""
    return SocialAuthService()
