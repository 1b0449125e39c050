from typing import Any, Dict, Optional
from gitrekt.core.errors import InvalidSignature
from gitrekt.repositories.event_repository import event_repo
from gitrekt.repositories.tracked_repo_repository import tracked_repo_repo
from gitrekt.services.github_service import github_service
from gitrekt.services.judgment_service import JudgmentService, judgment_service
from gitrekt.services.roast_scheduler import RoastScheduler, roast_scheduler
from gitrekt.utils.logger import logger


class WebhookService:

    def __init__(
        self,
        judgment: JudgmentService = None,
        scheduler: RoastScheduler = None,
        tracked_repos=None,
        events=None,
        github=None,
    ):
        self.judgment = judgment or judgment_service
        self.scheduler = scheduler or roast_scheduler
        self.tracked_repos = tracked_repos or tracked_repo_repo
        self.events = events or event_repo
        self.github = github or github_service

    def verify(self, body: bytes, signature: Optional[str]):
        if not self.github.verify_webhook_signature(body, signature):
            logger.warning("[Webhook] Rejected delivery with an invalid signature")
            raise InvalidSignature("Invalid webhook signature")

    async def handle_event(self, event_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if event_name == "push":
            return await self.handle_push(payload)
        if event_name == "workflow_run":
            return await self.handle_workflow_run(payload)
        if event_name == "repository" and payload.get("action") == "deleted":
            repo_name = payload.get("repository", {}).get("full_name")
            return await self.cascade_delete(repo_name)
        return {"message": f"Ignored: {event_name} event"}

    async def handle_push(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        repo_name = payload.get("repository", {}).get("full_name")
        commit_sha = payload.get("after")
        ref = payload.get("ref") or ""

        # Branch pushes only, not tags
        if not ref.startswith("refs/heads/") or not commit_sha:
            return {"message": "Push event received"}

        logger.info(f"[Webhook] Push event received for {repo_name} - commit {commit_sha}")

        tracked = await self.tracked_repos.find_by_name(repo_name)
        if tracked is None:
            logger.info(f"[Webhook] Repo {repo_name} is not tracked, skipping judgment")
            return {"message": "Push event received"}

        # Judge in the background; GitHub only waits a few seconds for the response
        branch = ref[len("refs/heads/"):]
        self.scheduler.spawn(
            self.judgment.judge(repo_name, commit_sha, branch=branch),
            f"judgment of {repo_name}@{commit_sha[:7]}",
        )
        logger.info(f"[Webhook] Triggered judgment for commit {commit_sha} in {repo_name}")

        return {"message": "Push event received", "judging": commit_sha}

    async def handle_workflow_run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """A failed CI run opens a fix window directly, without asking the judge"""
        run = payload.get("workflow_run") or {}
        if payload.get("action") != "completed" or run.get("conclusion") != "failure":
            return {"message": "Workflow run ignored"}

        repo_name = payload.get("repository", {}).get("full_name")
        commit_sha = run.get("head_sha")

        tracked = await self.tracked_repos.find_by_name(repo_name)
        if tracked is None or not commit_sha:
            return {"message": "Workflow run ignored"}

        if await self.events.exists_for_commit(repo_name, commit_sha):
            logger.info(f"[Webhook] {repo_name}@{commit_sha[:7]} already has a countdown, ignoring failed run")
            return {"message": "Already judged"}

        head_commit = run.get("head_commit") or {}
        actor = (
            (run.get("actor") or {}).get("login")
            or (head_commit.get("author") or {}).get("name")
            or "unknown"
        )
        verdict = await self.judgment.record_failure(
            tracked,
            commit_sha=commit_sha,
            actor=actor,
            commit_message=head_commit.get("message") or "No message",
            branch=run.get("head_branch") or "main",
            diff=None,
            reason=f"Workflow '{run.get('name') or 'CI'}' failed",
        )

        return {"message": "Failure recorded", "event_id": verdict.event_id}

    async def cascade_delete(self, repo_name: str) -> Dict[str, Any]:
        """Repository deleted upstream: drop its events, then its tracking row"""
        logger.info(f"[Webhook] Repository deleted: {repo_name}. Cleaning up...")

        deleted_events = await self.events.delete_by_repo_name(repo_name)
        untracked = await self.tracked_repos.delete_by_name(repo_name)

        logger.info(f"[Webhook] Cleaned up {repo_name}: {deleted_events} event(s), tracked={untracked}")
        return {
            "message": "Received",
            "deleted_events": deleted_events,
            "untracked": untracked,
        }


webhook_service = WebhookService()
