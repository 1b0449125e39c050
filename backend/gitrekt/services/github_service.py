"""
GitHub Service - Handles GitHub API interactions
"""
import hmac
import hashlib
from typing import Optional, Dict, Any
import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
from gitrekt.core.config import settings
from gitrekt.utils.logger import logger

# Commits the system itself pushes while managing the workflow file
GITREKT_COMMIT_MESSAGES = (
    "Setup GitRekt workflow",
    "Update GitRekt workflow",
    "Remove GitRekt workflow",
    "Initialize GitRekt Repository",
)

GITREKT_WORKFLOW_PATH = ".github/workflows/gitrekt.yml"

_read_retry = retry(
    retry=retry_if_exception_type(httpx.TransportError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, max=4),
    reraise=True,
)


class GitHubError(Exception):
    pass


class GitHubService:
    """Service for GitHub API operations"""

    def __init__(self, base_url: str = None, transport: httpx.AsyncBaseTransport = None):
        self.base_url = base_url or settings.GITHUB_API_BASE
        self.transport = transport

    @property
    def webhook_secret(self) -> Optional[str]:
        return settings.GITHUB_WEBHOOK_SECRET

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            transport=self.transport,
        )

    @staticmethod
    def _headers(access_token: str, accept: str = "application/vnd.github+json") -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": accept,
        }

    def verify_webhook_signature(self, payload_body: bytes, signature_header: Optional[str]) -> bool:
        """
        Verify GitHub webhook signature.
        HMAC-SHA256 over the raw body, compared in constant time.
        """
        if not signature_header or not self.webhook_secret:
            return False

        # GitHub sends signature as 'sha256=...'
        hash_algorithm, _, github_signature = signature_header.partition("=")
        if hash_algorithm != "sha256" or not github_signature:
            return False

        mac = hmac.new(
            self.webhook_secret.encode(),
            msg=payload_body,
            digestmod=hashlib.sha256
        )
        expected_signature = mac.hexdigest()

        return hmac.compare_digest(expected_signature, github_signature)

    @_read_retry
    async def get_commit_info(self, repo_name: str, access_token: str, sha: str) -> Dict[str, Any]:
        """Author, message and date of a commit; placeholders when GitHub refuses"""
        async with self._client() as client:
            response = await client.get(
                f"/repos/{repo_name}/commits/{sha}",
                headers=self._headers(access_token),
            )

        if response.status_code != 200:
            logger.error(f"[GitHub] Failed to fetch commit info for {repo_name}@{sha[:7]}: {response.status_code}")
            return {"author": "unknown", "message": "Unknown commit", "date": None}

        data = response.json()
        commit = data.get("commit") or {}
        return {
            "author": (data.get("author") or {}).get("login")
                or (commit.get("author") or {}).get("name")
                or "unknown",
            "message": commit.get("message") or "No message",
            "date": (commit.get("author") or {}).get("date")
                or (commit.get("committer") or {}).get("date"),
        }

    @_read_retry
    async def get_commit_diff(self, repo_name: str, access_token: str, sha: str) -> Optional[str]:
        """Unified diff of a commit, or None when it cannot be fetched"""
        async with self._client() as client:
            response = await client.get(
                f"/repos/{repo_name}/commits/{sha}",
                headers=self._headers(access_token, accept="application/vnd.github.diff"),
            )

        if response.status_code != 200:
            logger.error(f"[GitHub] Failed to fetch diff for {repo_name}@{sha[:7]}: {response.status_code}")
            return None
        return response.text

    @_read_retry
    async def get_default_branch(self, repo_name: str, access_token: str) -> str:
        async with self._client() as client:
            response = await client.get(
                f"/repos/{repo_name}",
                headers=self._headers(access_token),
            )

        if response.status_code == 200:
            return response.json().get("default_branch") or "main"
        return "main"

    async def revert_to_parent(self, repo_name: str, access_token: str, bad_commit_sha: str) -> str:
        """
        Force the default branch back to the first parent of bad_commit_sha.
        Returns the parent SHA, raises GitHubError otherwise.
        """
        async with self._client() as client:
            commit_response = await client.get(
                f"/repos/{repo_name}/commits/{bad_commit_sha}",
                headers=self._headers(access_token),
            )
            if commit_response.status_code != 200:
                raise GitHubError(f"Failed to fetch commit info: {commit_response.text}")

            parents = commit_response.json().get("parents") or []
            if not parents:
                raise GitHubError("No parent commit found - cannot revert initial commit")
            parent_sha = parents[0]["sha"]

            repo_response = await client.get(
                f"/repos/{repo_name}",
                headers=self._headers(access_token),
            )
            if repo_response.status_code != 200:
                raise GitHubError(f"Failed to fetch repo info: {repo_response.text}")
            default_branch = repo_response.json().get("default_branch") or "main"

            update_response = await client.patch(
                f"/repos/{repo_name}/git/refs/heads/{default_branch}",
                headers=self._headers(access_token),
                json={"sha": parent_sha, "force": True},
            )
            if update_response.status_code != 200:
                raise GitHubError(f"Failed to revert branch: {update_response.text}")

        logger.info(f"[GitHub] Reverted {repo_name} from {bad_commit_sha[:7]} to {parent_sha[:7]}")
        return parent_sha

    async def delete_repository(self, repo_name: str, access_token: str) -> None:
        """Delete the repository on GitHub, raises GitHubError unless 2xx"""
        async with self._client() as client:
            response = await client.delete(
                f"/repos/{repo_name}",
                headers=self._headers(access_token),
            )

        if not response.is_success:
            raise GitHubError(f"Failed to delete repository: {response.text}")

        logger.info(f"[GitHub] Repository {repo_name} deleted")


# Global instance
github_service = GitHubService()
