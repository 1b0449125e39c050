"""
Roast Lifecycle Service
Moves expired records to their terminal state and hands them to the
punishment dispatcher.

Every record is claimed with a conditional update before anything
irreversible happens. A sweep that loses the claim skips the record, so
punishments run at most once no matter how many sweeps overlap.
"""
import asyncio
from datetime import datetime
from typing import List, Optional, Callable, Tuple
from pydantic import BaseModel, Field
from gitrekt.core.errors import AlreadyProcessed, NotFound
from gitrekt.models.action import ActionKind, ActionOutcome
from gitrekt.models.event import Event, EventInDB
from gitrekt.models.pending_roast import PendingRoastInDB, RoastStatus
from gitrekt.repositories.event_repository import event_repo
from gitrekt.repositories.pending_roast_repository import pending_roast_repo
from gitrekt.repositories.tracked_repo_repository import tracked_repo_repo
from gitrekt.services.punishment_service import punishment_dispatcher
from gitrekt.utils.logger import logger


class SweepItem(BaseModel):
    event_id: str
    repo: str
    actor: str
    commit_message: str
    yolo_mode: bool = False
    actions: List[str] = []


class SweepResult(BaseModel):
    processed: int = 0
    results: List[SweepItem] = []
    expired_roasts: int = 0
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class RoastLifecycleService:

    def __init__(
        self,
        events=None,
        pending_roasts=None,
        tracked_repos=None,
        dispatcher=None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.events = events or event_repo
        self.pending_roasts = pending_roasts or pending_roast_repo
        self.tracked_repos = tracked_repos or tracked_repo_repo
        self.dispatcher = dispatcher or punishment_dispatcher
        self.clock = clock

    async def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Run one sweep and return how many records changed state"""
        result = await self.run_sweep(now)
        return result.processed

    async def run_sweep(self, now: Optional[datetime] = None) -> SweepResult:
        now = now or self.clock()

        due_events = await self.events.find_due(now)
        if due_events:
            logger.info(f"[Sweep] Found {len(due_events)} expired roast(s) to process")

        # Records are independent; one slow dispatch must not hold up the rest
        settled = await asyncio.gather(
            *(self._process_event(event, now) for event in due_events),
            return_exceptions=True,
        )

        results = []
        for event, item in zip(due_events, settled):
            if isinstance(item, BaseException):
                logger.error(f"[Sweep] Failed to process event {event.id}: {item}")
            elif item is not None:
                results.append(item)

        expired, converted = await self._expire_pending_roasts(now)

        # A linked roast shares its Event, which is already counted above
        return SweepResult(
            processed=len(results) + converted,
            results=results,
            expired_roasts=expired,
            timestamp=now,
        )

    async def _process_event(self, event: EventInDB, now: datetime) -> Optional[SweepItem]:
        if not await self.events.claim(event.id, now):
            # Another sweep got here first, or the fix landed in between
            return None

        config = await self.tracked_repos.find_by_name(event.repo_name)
        if config is None:
            logger.warning(f"[Sweep] No tracked repo found for {event.repo_name}, recording without punishment")
            actions = [
                ActionOutcome(
                    kind=ActionKind.UNTRACKED,
                    success=True,
                    detail="repository no longer tracked",
                )
            ]
        else:
            actions = await self.dispatcher.dispatch(event, config)

        try:
            await self.events.record_actions(event.id, actions)
        except Exception as e:
            logger.error(f"[Sweep] Could not store audit trail for event {event.id}: {e}")

        labels = [action.label for action in actions]
        logger.info(
            f"[Sweep] Event {event.id} ({event.repo_name}"
            f"{'@' + event.commit_sha[:7] if event.commit_sha else ''}): {', '.join(labels)}"
        )

        return SweepItem(
            event_id=event.id,
            repo=event.repo_name,
            actor=event.actor,
            commit_message=event.commit_message,
            yolo_mode=bool(config and config.yolo_mode),
            actions=labels,
        )

    async def _expire_pending_roasts(self, now: datetime) -> Tuple[int, int]:
        """Returns (roasts expired, audit Events created for unlinked roasts)"""
        expired = converted = 0
        for roast in await self.pending_roasts.find_expired(now):
            try:
                if await self._expire_pending_roast(roast, now):
                    expired += 1
                    if roast.event_id is None:
                        converted += 1
            except Exception as e:
                logger.error(f"[Sweep] Failed to process expired roast {roast.id}: {e}")
        return expired, converted

    async def _expire_pending_roast(self, roast: PendingRoastInDB, now: datetime) -> bool:
        if not await self.pending_roasts.transition(roast.id, RoastStatus.EXPIRED, now):
            return False

        # Linked roasts are punished through their Event; only unlinked ones
        # get an audit Event, which has no deadline and is never swept.
        if roast.event_id is None:
            await self.events.create(
                Event(
                    repo_name=roast.repo_name,
                    actor=roast.actor,
                    commit_message=roast.commit_message,
                    commit_sha=roast.commit_sha,
                    diff_summary=roast.diff_summary,
                    roast=roast.roast,
                    fail_reason=roast.fail_reason,
                    created_at=now,
                )
            )

        logger.info(f"[Sweep] Roast for {roast.repo_name} commit {roast.commit_sha[:7]} expired")
        return True

    async def list_pending(self, user_id: str) -> List[PendingRoastInDB]:
        return await self.pending_roasts.find_active_for_user(user_id, self.clock())

    async def mark_resolved(self, roast_id: str, user_id: Optional[str] = None) -> PendingRoastInDB:
        """
        Resolve a pending roast before its deadline.
        Raises NotFound for unknown ids (or someone else's roast) and
        AlreadyProcessed once it has left the pending state.
        """
        roast = await self.pending_roasts.find_by_id(roast_id)
        if roast is None or (user_id is not None and roast.user_id != user_id):
            raise NotFound("Pending roast not found")
        if roast.status != RoastStatus.PENDING:
            raise AlreadyProcessed("Pending roast already processed")

        # The linked Event is what gets punished, so it decides the race
        if roast.event_id and not await self.events.mark_fixed(roast.event_id):
            linked = await self.events.find_by_id(roast.event_id)
            if linked is not None and linked.posted:
                raise AlreadyProcessed("Roast already posted")

        now = self.clock()
        if not await self.pending_roasts.transition(roast.id, RoastStatus.RESOLVED, now):
            if not roast.event_id:
                raise AlreadyProcessed("Pending roast already processed")
            logger.warning(f"[Sweep] Roast {roast.id} expired while being resolved; event kept as fixed")
        else:
            logger.info(f"[Sweep] Roast {roast.id} for {roast.repo_name} resolved")

        return await self.pending_roasts.find_by_id(roast.id)


roast_lifecycle = RoastLifecycleService()
