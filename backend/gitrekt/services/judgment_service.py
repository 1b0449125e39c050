"""
Judgment Service
Fetches a pushed commit, asks the judge about its diff and, on a failing
verdict, opens a fix window for it.
"""
import re
from datetime import datetime
from typing import Callable, Optional
from gitrekt.agents.llm_client import llm_client
from gitrekt.core.config import settings
from gitrekt.core.errors import GitRektError, JudgmentFailed, NotTracked
from gitrekt.models.event import Event
from gitrekt.models.pending_roast import PendingRoast
from gitrekt.models.tracked_repo import TrackedRepoInDB
from gitrekt.models.verdict import Verdict, VerdictKind
from gitrekt.repositories.event_repository import event_repo
from gitrekt.repositories.pending_roast_repository import pending_roast_repo
from gitrekt.repositories.tracked_repo_repository import tracked_repo_repo
from gitrekt.repositories.user_repository import user_repo
from gitrekt.services.github_service import (
    GITREKT_COMMIT_MESSAGES,
    GITREKT_WORKFLOW_PATH,
    github_service,
)
from gitrekt.services.roast_scheduler import roast_scheduler
from gitrekt.utils.logger import logger

MAX_DIFF_SUMMARY_CHARS = 2000

_DIFF_FILE_RE = re.compile(r"^diff --git a/(\S+) b/(\S+)", re.MULTILINE)


def is_system_commit(message: str) -> bool:
    first_line = (message or "").strip().splitlines()[0] if (message or "").strip() else ""
    return any(first_line.startswith(marker) for marker in GITREKT_COMMIT_MESSAGES)


def touches_only_workflow(diff: str) -> bool:
    files = set()
    for before, after in _DIFF_FILE_RE.findall(diff):
        files.update((before, after))
    return bool(files) and files == {GITREKT_WORKFLOW_PATH}


class JudgmentService:

    def __init__(
        self,
        tracked_repos=None,
        events=None,
        pending_roasts=None,
        users=None,
        github=None,
        llm=None,
        scheduler=None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.tracked_repos = tracked_repos or tracked_repo_repo
        self.events = events or event_repo
        self.pending_roasts = pending_roasts or pending_roast_repo
        self.users = users or user_repo
        self.github = github or github_service
        self.llm = llm or llm_client
        self.scheduler = scheduler
        self.clock = clock

    async def judge(self, repo_name: str, commit_sha: str, branch: Optional[str] = None) -> Verdict:
        tracked = await self.tracked_repos.find_by_name(repo_name)
        if tracked is None:
            raise NotTracked(f"Repo {repo_name} is not tracked")

        try:
            return await self._judge(tracked, commit_sha, branch)
        except GitRektError:
            raise
        except Exception as e:
            logger.error(f"[Judge] Judgment failed for {repo_name}@{commit_sha[:7]}: {e}", exc_info=True)
            raise JudgmentFailed("Judgment failed") from e

    async def _judge(self, tracked: TrackedRepoInDB, commit_sha: str, branch: Optional[str]) -> Verdict:
        repo_name = tracked.repo_name
        token = await self.users.get_github_token(tracked.user_id)
        if not token:
            raise JudgmentFailed(f"No GitHub credential for the owner of {repo_name}")

        info = await self.github.get_commit_info(repo_name, token, commit_sha)
        if is_system_commit(info["message"]):
            logger.info(f"[Judge] Skipping system commit {commit_sha[:7]} in {repo_name}")
            return Verdict(verdict=VerdictKind.SKIP, reason="System commit")

        diff = await self.github.get_commit_diff(repo_name, token, commit_sha)
        if not diff or not diff.strip():
            return Verdict(verdict=VerdictKind.PASS, reason="No changes to judge")

        if touches_only_workflow(diff):
            logger.info(f"[Judge] Skipping workflow-only commit {commit_sha[:7]} in {repo_name}")
            return Verdict(verdict=VerdictKind.SKIP, reason="Only the GitRekt workflow changed")

        judgment = await self.llm.judge_code(diff)
        if judgment.passed:
            return Verdict(verdict=VerdictKind.PASS, reason=judgment.reason)

        if not branch:
            branch = await self.github.get_default_branch(repo_name, token)

        return await self.record_failure(
            tracked,
            commit_sha=commit_sha,
            actor=info["author"],
            commit_message=info["message"],
            branch=branch,
            diff=diff,
            reason=judgment.reason,
        )

    async def record_failure(
        self,
        tracked: TrackedRepoInDB,
        commit_sha: str,
        actor: str,
        commit_message: str,
        branch: str,
        diff: Optional[str],
        reason: str,
    ) -> Verdict:
        """
        Open a fix window: one Event with a deadline plus its pending roast.
        A commit that already has a window gets that window's verdict back.
        """
        now = self.clock()
        deadline = now + tracked.fix_window(settings.DEV_TIMER_SECONDS)
        diff_summary = diff[:MAX_DIFF_SUMMARY_CHARS] if diff else None

        # Reserve the Event before the slow roast call so repeat deliveries lose
        event_id = await self.events.open_countdown(
            Event(
                repo_name=tracked.repo_name,
                actor=actor,
                commit_message=commit_message,
                commit_sha=commit_sha,
                diff_summary=diff_summary,
                fail_reason=reason,
                deadline=deadline,
                posted=False,
                fixed=False,
                created_at=now,
            )
        )
        if event_id is None:
            return await self._existing_verdict(tracked.repo_name, commit_sha, reason)

        roast = await self.llm.generate_roast(
            actor=actor,
            repo=tracked.repo_name,
            commit_message=commit_message,
            branch=branch,
            diff=diff,
            fail_reason=reason,
        )
        if roast:
            await self.events.set_roast(event_id, roast)

        pending_roast_id = None
        try:
            pending_roast_id = await self.pending_roasts.create(
                PendingRoast(
                    repo_name=tracked.repo_name,
                    user_id=tracked.user_id,
                    actor=actor,
                    commit_sha=commit_sha,
                    commit_message=commit_message,
                    diff_summary=diff_summary,
                    fail_reason=reason,
                    roast=roast,
                    event_id=event_id,
                    expires_at=deadline,
                    created_at=now,
                )
            )
        except Exception as e:
            # The Event alone still carries the punishment
            logger.error(f"[Judge] Could not record pending roast for event {event_id}: {e}")

        if self.scheduler is not None:
            self.scheduler.schedule_one_shot((deadline - now).total_seconds())

        logger.info(f"[Judge] {tracked.repo_name}@{commit_sha[:7]} failed ({reason}); deadline {deadline.isoformat()}")

        return Verdict(
            verdict=VerdictKind.FAIL,
            reason=reason,
            roast=roast,
            deadline=deadline,
            event_id=event_id,
            pending_roast_id=pending_roast_id,
        )

    async def _existing_verdict(self, repo_name: str, commit_sha: str, reason: str) -> Verdict:
        existing = await self.events.find_countdown(repo_name, commit_sha)
        logger.info(f"[Judge] {repo_name}@{commit_sha[:7]} already has a fix window, not opening another")
        if existing is None:
            # Removed between the insert attempt and this read
            return Verdict(verdict=VerdictKind.FAIL, reason=reason)
        return Verdict(
            verdict=VerdictKind.FAIL,
            reason=existing.fail_reason or reason,
            roast=existing.roast,
            deadline=existing.deadline,
            event_id=existing.id,
        )


judgment_service = JudgmentService(scheduler=roast_scheduler)
