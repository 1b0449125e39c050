from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest
from mongomock_motor import AsyncMongoMockClient

from gitrekt.agents.llm_client import Judgment
from gitrekt.database import mongodb
from gitrekt.models.tracked_repo import TrackedRepo
from gitrekt.models.user import User
from gitrekt.repositories.tracked_repo_repository import tracked_repo_repo
from gitrekt.repositories.user_repository import user_repo
from gitrekt.services.github_service import GitHubError
from gitrekt.services.social_service import PostResult


START = datetime(2026, 3, 1, 12, 0, 0)


class FakeClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeGitHub:
    def __init__(self, diff: Optional[str] = "diff --git a/app.py b/app.py\n+print(\n", message="feat: things"):
        self.diff = diff
        self.message = message
        self.author = "wile"
        self.fail_revert = False
        self.fail_delete = False
        self.calls: List[tuple] = []

    async def get_commit_info(self, repo_name, access_token, sha):
        self.calls.append(("commit_info", repo_name, sha))
        return {"author": self.author, "message": self.message, "date": None}

    async def get_commit_diff(self, repo_name, access_token, sha):
        self.calls.append(("diff", repo_name, sha))
        return self.diff

    async def get_default_branch(self, repo_name, access_token):
        return "main"

    async def revert_to_parent(self, repo_name, access_token, sha):
        self.calls.append(("revert", repo_name, sha))
        if self.fail_revert:
            raise GitHubError("Failed to revert branch: protected")
        return "parent000"

    async def delete_repository(self, repo_name, access_token):
        self.calls.append(("delete", repo_name))
        if self.fail_delete:
            raise GitHubError("Failed to delete repository: 403")

    def called(self, kind: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == kind]


class FakeSocial:
    def __init__(self, results: Dict[str, PostResult] = None):
        self.results = results or {}
        self.posts: List[tuple] = []

    async def post(self, platform, user_id, text):
        self.posts.append((platform, user_id, text))
        return self.results.get(
            platform, PostResult(platform=platform, success=True, post_id=f"{platform}-1")
        )


class FakeLLM:
    def __init__(self, passed: bool = False, reason: str = "syntax error", roast: Optional[str] = "lol #GitRekt"):
        self.passed = passed
        self.reason = reason
        self.roast = roast
        self.judged: List[str] = []

    async def judge_code(self, diff):
        self.judged.append(diff)
        return Judgment(passed=self.passed, reason=self.reason)

    async def generate_roast(self, actor, repo, commit_message, branch, diff=None, fail_reason=None):
        return self.roast


class FakeScheduler:
    def __init__(self):
        self.one_shots: List[float] = []
        self.spawned: List[str] = []

    def schedule_one_shot(self, delay_seconds):
        self.one_shots.append(delay_seconds)

    def spawn(self, coro, label):
        # Not awaited here; close it so no warning is raised
        coro.close()
        self.spawned.append(label)

    def spawn_sweep(self, reason="lazy"):
        self.spawned.append(f"{reason} sweep")


@pytest.fixture(autouse=True)
def database():
    mongodb.db.client = AsyncMongoMockClient()
    yield mongodb.get_database()
    mongodb.db.client = None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def social():
    return FakeSocial()


@pytest.fixture
def owner():
    return User(github_id="42", username="wile", access_token="gh-token")


@pytest.fixture
async def stored_owner(owner):
    await user_repo.create_or_update(owner)
    return owner


@pytest.fixture
def track(stored_owner):
    async def _track(repo_name="acme/api", **config):
        await tracked_repo_repo.create_or_update(
            TrackedRepo(repo_name=repo_name, user_id=stored_owner.github_id, **config)
        )
        return await tracked_repo_repo.find_by_name(repo_name)

    return _track
