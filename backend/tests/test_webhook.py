import asyncio
import hashlib
import hmac
import json

import pytest
from fastapi.testclient import TestClient

from conftest import START, FakeGitHub, FakeLLM, FakeScheduler
from gitrekt.core.config import settings
from gitrekt.main import app
from gitrekt.models.event import Event
from gitrekt.repositories.event_repository import event_repo
from gitrekt.repositories.tracked_repo_repository import tracked_repo_repo
from gitrekt.services.github_service import GitHubService
from gitrekt.services.judgment_service import JudgmentService
from gitrekt.services.webhook_service import WebhookService

SECRET = "It's a Secret to Everybody"


def _sign(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


@pytest.fixture
def webhook_secret(monkeypatch):
    monkeypatch.setattr(settings, "GITHUB_WEBHOOK_SECRET", SECRET)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def webhooks(clock, scheduler):
    judgment = JudgmentService(github=FakeGitHub(), llm=FakeLLM(), scheduler=scheduler, clock=clock)
    return WebhookService(judgment=judgment, scheduler=scheduler)


def test_signature_verification(webhook_secret):
    service = GitHubService()
    body = b'{"zen": "Keep it logically awesome."}'

    assert service.verify_webhook_signature(body, _sign(body))
    assert not service.verify_webhook_signature(body, _sign(body, "wrong"))
    assert not service.verify_webhook_signature(body + b" ", _sign(body))
    assert not service.verify_webhook_signature(body, None)
    assert not service.verify_webhook_signature(body, "sha1=" + _sign(body)[7:])


def test_signature_requires_configured_secret(monkeypatch):
    monkeypatch.setattr(settings, "GITHUB_WEBHOOK_SECRET", None)
    body = b"{}"

    assert not GitHubService().verify_webhook_signature(body, _sign(body))


async def test_push_to_tracked_repo_schedules_judgment(track, webhooks, scheduler):
    await track()

    response = await webhooks.handle_event(
        "push",
        {"ref": "refs/heads/main", "after": "abc1234def", "repository": {"full_name": "acme/api"}},
    )

    assert response["judging"] == "abc1234def"
    assert scheduler.spawned == ["judgment of acme/api@abc1234"]


async def test_push_ignores_tags_and_untracked(track, webhooks, scheduler):
    await track()

    await webhooks.handle_event(
        "push",
        {"ref": "refs/tags/v1", "after": "abc1234", "repository": {"full_name": "acme/api"}},
    )
    await webhooks.handle_event(
        "push",
        {"ref": "refs/heads/main", "after": "abc1234", "repository": {"full_name": "other/repo"}},
    )

    assert scheduler.spawned == []


def _workflow_run(conclusion="failure", sha="abc1234"):
    return {
        "action": "completed",
        "repository": {"full_name": "acme/api"},
        "workflow_run": {
            "name": "CI",
            "conclusion": conclusion,
            "head_sha": sha,
            "head_branch": "main",
            "actor": {"login": "wile"},
            "head_commit": {"message": "yolo push"},
        },
    }


async def test_failed_workflow_run_opens_fix_window(track, webhooks, clock):
    await track(timer_minutes=5)

    response = await webhooks.handle_event("workflow_run", _workflow_run())

    event = await event_repo.find_by_id(response["event_id"])
    assert event.fail_reason == "Workflow 'CI' failed"
    assert event.commit_message == "yolo push"
    assert event.deadline == START.replace(minute=5)
    assert event.posted is False


async def test_successful_or_duplicate_workflow_runs_are_ignored(database, track, webhooks):
    await track()

    await webhooks.handle_event("workflow_run", _workflow_run(conclusion="success"))
    assert await database["events"].count_documents({}) == 0

    await webhooks.handle_event("workflow_run", _workflow_run())
    await webhooks.handle_event("workflow_run", _workflow_run())
    assert await database["events"].count_documents({}) == 1


async def test_parallel_failed_workflows_open_one_window(database, track, clock, scheduler):
    await track()

    class SlowRoastLLM(FakeLLM):
        async def generate_roast(self, *args, **kwargs):
            await asyncio.sleep(0.01)
            return self.roast

    judgment = JudgmentService(github=FakeGitHub(), llm=SlowRoastLLM(), scheduler=scheduler, clock=clock)
    webhooks = WebhookService(judgment=judgment, scheduler=scheduler)

    responses = await asyncio.gather(
        webhooks.handle_event("workflow_run", _workflow_run()),
        webhooks.handle_event("workflow_run", _workflow_run()),
    )

    assert await database["events"].count_documents({"commit_sha": "abc1234"}) == 1
    event_ids = {response.get("event_id") for response in responses} - {None}
    assert len(event_ids) == 1


async def test_repository_deleted_cascades(database, track, webhooks):
    await track()
    await track("acme/web")
    for _ in range(3):
        await event_repo.create(Event(repo_name="acme/api", actor="wile", commit_message="x"))
    await event_repo.create(Event(repo_name="acme/web", actor="wile", commit_message="x"))

    response = await webhooks.handle_event(
        "repository", {"action": "deleted", "repository": {"full_name": "acme/api"}}
    )

    assert response["deleted_events"] == 3
    assert await database["events"].count_documents({"repo_name": "acme/api"}) == 0
    assert await tracked_repo_repo.find_by_name("acme/api") is None
    assert await database["events"].count_documents({"repo_name": "acme/web"}) == 1
    assert await tracked_repo_repo.find_by_name("acme/web") is not None


def test_webhook_route_rejects_bad_signature(webhook_secret):
    client = TestClient(app)
    body = json.dumps({"zen": "hi"}).encode()

    response = client.post(
        "/webhook",
        content=body,
        headers={"X-GitHub-Event": "ping", "X-Hub-Signature-256": _sign(body, "nope")},
    )

    assert response.status_code == 401


def test_webhook_route_without_secret_is_a_config_error(monkeypatch):
    monkeypatch.setattr(settings, "GITHUB_WEBHOOK_SECRET", None)

    response = TestClient(app).post("/webhook", content=b"{}", headers={"X-GitHub-Event": "ping"})

    assert response.status_code == 500


def test_webhook_route_accepts_signed_ping(webhook_secret):
    body = json.dumps({"zen": "hi"}).encode()

    response = TestClient(app).post(
        "/webhook",
        content=body,
        headers={"X-GitHub-Event": "ping", "X-Hub-Signature-256": _sign(body)},
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Ignored: ping event"}
