"""
Social Service - posts roasts to X/Twitter and LinkedIn
Every call returns a PostResult; nothing is raised to the caller
"""
import base64
import time
from typing import Optional
import httpx
from pydantic import BaseModel
from gitrekt.core.config import settings
from gitrekt.models.user import SocialAccount
from gitrekt.repositories.user_repository import user_repo
from gitrekt.utils.logger import logger

TWITTER_API_BASE = "https://api.twitter.com"
LINKEDIN_API_BASE = "https://api.linkedin.com"

# Refresh tokens that expire within this window
TOKEN_REFRESH_BUFFER_SECONDS = 5 * 60


class PostResult(BaseModel):
    platform: str
    success: bool
    post_id: Optional[str] = None
    error: Optional[str] = None


class SocialService:
    """Posts text on behalf of a user using the tokens in the credential store"""

    def __init__(self, users=None, transport: httpx.AsyncBaseTransport = None):
        self.users = users or user_repo
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS, transport=self.transport)

    async def post(self, platform: str, user_id: str, text: str) -> PostResult:
        try:
            if platform == "twitter":
                return await self.post_to_twitter(user_id, text)
            if platform == "linkedin":
                return await self.post_to_linkedin(user_id, text)
            return PostResult(platform=platform, success=False, error=f"Unsupported platform: {platform}")
        except Exception as e:
            logger.error(f"[Social] Error posting to {platform}: {e}")
            return PostResult(platform=platform, success=False, error=str(e) or type(e).__name__)

    async def _account(self, user_id: str, provider: str) -> Optional[SocialAccount]:
        user = await self.users.find_by_github_id(user_id)
        if not user:
            return None
        return user.social_account(provider)

    # ------------------------------------------------------------------
    # X / Twitter
    # ------------------------------------------------------------------

    async def refresh_twitter_token(self, user_id: str, refresh_token: str) -> Optional[str]:
        """OAuth2 refresh grant; stores the rotated pair, returns the new access token"""
        client_id = settings.TWITTER_CLIENT_ID or ""
        client_secret = settings.TWITTER_CLIENT_SECRET or ""
        basic_auth = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode()

        async with self._client() as client:
            response = await client.post(
                f"{TWITTER_API_BASE}/2/oauth2/token",
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Authorization": f"Basic {basic_auth}",
                },
                data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            )

        if response.status_code != 200:
            logger.error(f"[Social] Failed to refresh Twitter token: {response.text}")
            return None

        data = response.json()
        expires_in = data.get("expires_in")
        await self.users.update_social_tokens(
            user_id,
            "twitter",
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or refresh_token,
            expires_at=int(time.time()) + expires_in if expires_in else None,
        )
        logger.info("[Social] Twitter token refreshed")
        return data["access_token"]

    async def _tweet(self, access_token: str, text: str) -> httpx.Response:
        async with self._client() as client:
            return await client.post(
                f"{TWITTER_API_BASE}/2/tweets",
                headers={"Authorization": f"Bearer {access_token}"},
                json={"text": text},
            )

    @staticmethod
    def _twitter_error(response: httpx.Response, default: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or default
        return body.get("detail") or body.get("title") or default

    async def post_to_twitter(self, user_id: str, text: str) -> PostResult:
        account = await self._account(user_id, "twitter")
        if not account or not account.access_token:
            return PostResult(platform="twitter", success=False, error="No Twitter account connected")

        access_token = account.access_token

        if account.expires_at and time.time() >= account.expires_at - TOKEN_REFRESH_BUFFER_SECONDS:
            logger.info("[Social] Twitter token expired or expiring soon, refreshing...")
            if not account.refresh_token:
                return PostResult(
                    platform="twitter",
                    success=False,
                    error="Token expired and no refresh token available. Please reconnect your X account.",
                )
            access_token = await self.refresh_twitter_token(user_id, account.refresh_token)
            if not access_token:
                return PostResult(
                    platform="twitter",
                    success=False,
                    error="Failed to refresh expired token. Please reconnect your X account.",
                )

        response = await self._tweet(access_token, text)

        if response.status_code == 401 and account.refresh_token:
            logger.info("[Social] Got 401 from Twitter, attempting token refresh...")
            new_token = await self.refresh_twitter_token(user_id, account.refresh_token)
            if not new_token:
                return PostResult(
                    platform="twitter",
                    success=False,
                    error="Token rejected and refresh failed. Please reconnect your X account.",
                )

            response = await self._tweet(new_token, text)
            if not response.is_success:
                return PostResult(
                    platform="twitter",
                    success=False,
                    error=self._twitter_error(response, "Failed after token refresh"),
                )

        if not response.is_success:
            return PostResult(
                platform="twitter",
                success=False,
                error=self._twitter_error(response, "Failed to post tweet"),
            )

        post_id = (response.json().get("data") or {}).get("id")
        logger.info(f"[Social] Posted to Twitter: {post_id}")
        return PostResult(platform="twitter", success=True, post_id=post_id)

    # ------------------------------------------------------------------
    # LinkedIn
    # ------------------------------------------------------------------

    async def post_to_linkedin(self, user_id: str, text: str) -> PostResult:
        account = await self._account(user_id, "linkedin")
        if not account or not account.access_token:
            return PostResult(platform="linkedin", success=False, error="No LinkedIn account connected")

        headers = {"Authorization": f"Bearer {account.access_token}"}

        async with self._client() as client:
            profile_response = await client.get(f"{LINKEDIN_API_BASE}/v2/userinfo", headers=headers)
            if not profile_response.is_success:
                return PostResult(platform="linkedin", success=False, error="Failed to get LinkedIn profile")

            person_urn = f"urn:li:person:{profile_response.json()['sub']}"

            post_response = await client.post(
                f"{LINKEDIN_API_BASE}/v2/ugcPosts",
                headers={**headers, "X-Restli-Protocol-Version": "2.0.0"},
                json={
                    "author": person_urn,
                    "lifecycleState": "PUBLISHED",
                    "specificContent": {
                        "com.linkedin.ugc.ShareContent": {
                            "shareCommentary": {"text": text},
                            "shareMediaCategory": "NONE",
                        },
                    },
                    "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
                },
            )

        if not post_response.is_success:
            try:
                error = post_response.json().get("message")
            except ValueError:
                error = None
            return PostResult(platform="linkedin", success=False, error=error or "Failed to post to LinkedIn")

        post_id = post_response.json().get("id")
        logger.info(f"[Social] Posted to LinkedIn: {post_id}")
        return PostResult(platform="linkedin", success=True, post_id=post_id)


social_service = SocialService()
