from datetime import datetime

from conftest import FakeGitHub, FakeSocial
from gitrekt.models.action import ActionKind
from gitrekt.models.event import EventInDB
from gitrekt.repositories.tracked_repo_repository import tracked_repo_repo
from gitrekt.services.punishment_service import PunishmentDispatcher, build_social_message
from gitrekt.services.social_service import PostResult


def _event(**fields) -> EventInDB:
    data = dict(
        _id="64b000000000000000000001",
        repo_name="acme/api",
        actor="wile",
        commit_message="feat: things",
        commit_sha="abc1234",
        roast="You shipped a syntax error. Bold. #GitRekt",
        deadline=datetime(2026, 3, 1, 12, 0, 0),
        posted=True,
    )
    data.update(fields)
    return EventInDB(**data)


async def test_twitter_failure_does_not_stop_linkedin(track, github):
    config = await track(post_to_twitter=True, post_to_linkedin=True)
    social = FakeSocial(
        {
            "twitter": PostResult(platform="twitter", success=False, error="Failed to refresh expired token"),
            "linkedin": PostResult(platform="linkedin", success=True, post_id="urn:li:share:1"),
        }
    )

    outcomes = await PunishmentDispatcher(github=github, social=social).dispatch(_event(), config)

    assert [(o.platform, o.success) for o in outcomes] == [("twitter", False), ("linkedin", True)]
    assert outcomes[0].error == "Failed to refresh expired token"
    assert outcomes[1].post_id == "urn:li:share:1"
    assert [post[0] for post in social.posts] == ["twitter", "linkedin"]


async def test_social_adapter_exception_becomes_outcome(track, github):
    config = await track(post_to_twitter=True, post_to_linkedin=True)

    class BrokenTwitter(FakeSocial):
        async def post(self, platform, user_id, text):
            if platform == "twitter":
                raise ConnectionError("api.twitter.com unreachable")
            return await super().post(platform, user_id, text)

    outcomes = await PunishmentDispatcher(github=github, social=BrokenTwitter()).dispatch(_event(), config)

    assert outcomes[0].success is False
    assert outcomes[0].error == "api.twitter.com unreachable"
    assert outcomes[1].success is True


async def test_posts_stored_roast_or_fallback_message(track, github, social):
    config = await track(post_to_twitter=True)
    dispatcher = PunishmentDispatcher(github=github, social=social)

    await dispatcher.dispatch(_event(), config)
    await dispatcher.dispatch(_event(roast=None), config)

    assert social.posts[0] == ("twitter", "42", "You shipped a syntax error. Bold. #GitRekt")
    assert "acme/api" in social.posts[1][2]
    assert build_social_message(_event(roast="   ")) == social.posts[1][2]


async def test_revert_runs_before_delete(track, github, social):
    config = await track(revert_commit=True, yolo_mode=True)

    outcomes = await PunishmentDispatcher(github=github, social=social).dispatch(_event(), config)

    assert [call[0] for call in github.calls] == ["revert", "delete"]
    assert [o.label for o in outcomes] == ["commit_reverted", "repo_deleted", "tracking_removed"]
    assert await tracked_repo_repo.find_by_name("acme/api") is None


async def test_revert_without_commit_sha_does_not_apply(track, github, social):
    config = await track(revert_commit=True)

    outcomes = await PunishmentDispatcher(github=github, social=social).dispatch(_event(commit_sha=None), config)

    assert github.calls == []
    assert [o.kind for o in outcomes] == [ActionKind.RECORD_ONLY]
    assert outcomes[0].label == "recorded_only"

    config = await track(revert_commit=True, post_to_twitter=True)
    outcomes = await PunishmentDispatcher(github=github, social=social).dispatch(_event(commit_sha=None), config)

    assert [o.label for o in outcomes] == ["twitter_posted"]


async def test_revert_failure_does_not_block_delete(track, social):
    config = await track(revert_commit=True, yolo_mode=True)
    github = FakeGitHub()
    github.fail_revert = True

    outcomes = await PunishmentDispatcher(github=github, social=social).dispatch(_event(), config)

    assert [o.label for o in outcomes] == ["revert_failed", "repo_deleted", "tracking_removed"]
    assert "protected" in outcomes[0].error


async def test_failed_delete_keeps_tracking(track, social):
    config = await track(yolo_mode=True)
    github = FakeGitHub()
    github.fail_delete = True

    outcomes = await PunishmentDispatcher(github=github, social=social).dispatch(_event(), config)

    assert [o.label for o in outcomes] == ["repo_deletion_failed"]
    assert await tracked_repo_repo.find_by_name("acme/api") is not None


async def test_cleanup_failure_is_reported_not_raised(track, github, social):
    config = await track(yolo_mode=True)

    class BrokenRepos:
        async def delete_by_name(self, repo_name):
            raise RuntimeError("mongo down")

    dispatcher = PunishmentDispatcher(github=github, social=social, tracked_repos=BrokenRepos())
    outcomes = await dispatcher.dispatch(_event(), config)

    assert [o.label for o in outcomes] == ["repo_deleted", "tracking_cleanup_failed"]
    assert outcomes[1].error == "mongo down"


async def test_missing_github_credential(track, github, social):
    config = await track(yolo_mode=True)

    class NoTokens:
        async def get_github_token(self, github_id):
            return None

    outcomes = await PunishmentDispatcher(github=github, social=social, users=NoTokens()).dispatch(_event(), config)

    assert outcomes[0].label == "repo_deletion_failed"
    assert github.calls == []
