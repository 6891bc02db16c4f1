"""Google OAuth2 provider integration"""

import logging
from typing import Optional

from authlib.integrations.starlette_client import OAuth, OAuthError
from starlette.requests import Request

from app.config import settings
from app.services.identity_service import OAuthIdentity

logger = logging.getLogger(__name__)


class GoogleOAuthProvider:
    """Thin wrapper over the authlib Google client"""

    def __init__(self) -> None:
        self._oauth = OAuth()
        self._oauth.register(
            name="google",
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET,
            server_metadata_url=settings.GOOGLE_SERVER_METADATA_URL,
            client_kwargs={"scope": settings.GOOGLE_SCOPES, "prompt": "select_account"},
        )

    @property
    def client(self):
        return self._oauth.google

    async def authorize_redirect(self, request: Request, redirect_uri: str):
        """Redirect response sending the browser to Google's consent page"""
        return await self.client.authorize_redirect(request, redirect_uri)

    async def fetch_identity(self, request: Request) -> Optional[OAuthIdentity]:
        """
        Exchange the callback's authorization code for an identity assertion

        Returns:
            Optional[OAuthIdentity]: None when the provider gave no usable assertion
        """
        try:
            token = await self.client.authorize_access_token(request)
        except OAuthError as e:
            logger.error(f"Google OAuth failure: {e.error}: {e.description}")
            return None

        userinfo = token.get("userinfo")
        if not userinfo:
            userinfo = await self.client.userinfo(token=token)

        subject = userinfo.get("sub") if userinfo else None
        if not subject:
            logger.error("Google OAuth response carried no subject")
            return None

        return OAuthIdentity(
            provider_id=str(subject),
            email=userinfo.get("email") or "",
            name=userinfo.get("name") or "",
        )


google_oauth = GoogleOAuthProvider()
