"""
Punishment Service
Runs the configured punitive actions for an Event whose fix window ran out.

Actions run in a fixed order: social posts, commit revert, repository
destruction. Each one is attempted independently and its result is
returned as an ActionOutcome; dispatch() never raises.
"""
from typing import List, Optional
from gitrekt.models.action import ActionKind, ActionOutcome
from gitrekt.models.event import EventInDB
from gitrekt.models.tracked_repo import TrackedRepoInDB
from gitrekt.repositories.tracked_repo_repository import tracked_repo_repo
from gitrekt.repositories.user_repository import user_repo
from gitrekt.services.github_service import github_service
from gitrekt.services.social_service import social_service
from gitrekt.utils.logger import logger


def build_social_message(event: EventInDB) -> str:
    """Stored roast text, or a generic message naming the repo"""
    if event.roast and event.roast.strip():
        return event.roast.strip()
    return (
        f"Someone pushed broken code to {event.repo_name} and didn't fix it in time. "
        "#GitRekt #BadCode #Oops"
    )


class PunishmentDispatcher:

    def __init__(self, github=None, social=None, users=None, tracked_repos=None):
        self.github = github or github_service
        self.social = social or social_service
        self.users = users or user_repo
        self.tracked_repos = tracked_repos or tracked_repo_repo

    async def dispatch(self, event: EventInDB, config: TrackedRepoInDB) -> List[ActionOutcome]:
        outcomes: List[ActionOutcome] = []

        if config.post_to_twitter or config.post_to_linkedin:
            outcomes.extend(await self._post_social(event, config))

        if config.revert_commit:
            if event.commit_sha:
                outcomes.append(await self._revert(event, config))
            else:
                logger.info(f"[Dispatch] No commit SHA recorded for event {event.id}, skipping revert")

        if config.yolo_mode:
            outcomes.extend(await self._destroy(event, config))

        if not outcomes:
            outcomes.append(
                ActionOutcome(
                    kind=ActionKind.RECORD_ONLY,
                    success=True,
                    detail="recorded only, no punishment configured",
                )
            )

        return outcomes

    async def _github_token(self, config: TrackedRepoInDB) -> Optional[str]:
        return await self.users.get_github_token(config.user_id)

    async def _post_social(self, event: EventInDB, config: TrackedRepoInDB) -> List[ActionOutcome]:
        message = build_social_message(event)
        platforms = []
        if config.post_to_twitter:
            platforms.append("twitter")
        if config.post_to_linkedin:
            platforms.append("linkedin")

        outcomes = []
        for platform in platforms:
            try:
                result = await self.social.post(platform, config.user_id, message)
                outcome = ActionOutcome(
                    kind=ActionKind.SOCIAL_POST,
                    platform=platform,
                    success=result.success,
                    post_id=result.post_id,
                    error=result.error,
                )
            except Exception as e:
                outcome = ActionOutcome(
                    kind=ActionKind.SOCIAL_POST,
                    platform=platform,
                    success=False,
                    error=str(e) or type(e).__name__,
                )

            if outcome.success:
                logger.info(f"[Dispatch] Posted roast for {event.repo_name} to {platform}: {outcome.post_id}")
            else:
                logger.error(f"[Dispatch] Failed to post roast for {event.repo_name} to {platform}: {outcome.error}")
            outcomes.append(outcome)

        return outcomes

    async def _revert(self, event: EventInDB, config: TrackedRepoInDB) -> ActionOutcome:
        try:
            token = await self._github_token(config)
            if not token:
                raise ValueError(f"No GitHub credential for user {config.user_id}")

            parent_sha = await self.github.revert_to_parent(event.repo_name, token, event.commit_sha)
            logger.info(f"[Dispatch] Reverted {event.repo_name} past {event.commit_sha[:7]}")
            return ActionOutcome(
                kind=ActionKind.REVERT_COMMIT,
                success=True,
                detail=f"branch reset to {parent_sha}",
            )
        except Exception as e:
            logger.error(f"[Dispatch] Failed to revert {event.repo_name}@{event.commit_sha[:7]}: {e}")
            return ActionOutcome(kind=ActionKind.REVERT_COMMIT, success=False, error=str(e))

    async def _destroy(self, event: EventInDB, config: TrackedRepoInDB) -> List[ActionOutcome]:
        logger.warning(f"[Dispatch] YOLO mode: deleting repository {config.repo_name}")
        try:
            token = await self._github_token(config)
            if not token:
                raise ValueError(f"No GitHub credential for user {config.user_id}")

            await self.github.delete_repository(config.repo_name, token)
        except Exception as e:
            logger.error(f"[Dispatch] Failed to delete repo {config.repo_name}: {e}")
            return [ActionOutcome(kind=ActionKind.DELETE_REPO, success=False, error=str(e))]

        outcomes = [ActionOutcome(kind=ActionKind.DELETE_REPO, success=True)]

        # The repository is gone upstream; stop tracking it
        try:
            removed = await self.tracked_repos.delete_by_name(config.repo_name)
            outcomes.append(
                ActionOutcome(
                    kind=ActionKind.CLEANUP,
                    success=True,
                    detail=None if removed else "tracking already removed",
                )
            )
        except Exception as e:
            logger.error(f"[Dispatch] Failed to clean up tracked repo {config.repo_name}: {e}")
            outcomes.append(ActionOutcome(kind=ActionKind.CLEANUP, success=False, error=str(e)))

        return outcomes


punishment_dispatcher = PunishmentDispatcher()
