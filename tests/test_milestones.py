"""Tests for milestone migration."""

from __future__ import annotations

import datetime as dt

import pytest

from github_to_azure_migrator.milestones import MilestoneMigrator
from github_to_azure_migrator.models import SourceMilestone, SourceUser
from github_to_azure_migrator.users import UserResolver


@pytest.mark.unit
class TestMilestoneMigrator:
    def test_creates_epic(self, source_factory, target) -> None:
        source = source_factory(users={"octocat": SourceUser(login="octocat", name="The Octocat")})
        milestone = SourceMilestone(
            number=5,
            title="v1",
            html_url="https://github.com/o/r/milestone/5",
            description="First **release**",
            created_at=dt.datetime(2024, 1, 1, tzinfo=dt.UTC),
            creator="octocat",
        )

        epic = MilestoneMigrator(target, UserResolver(source)).migrate(milestone)

        work_item = target.work_items[epic.target_id]
        fields = target.fields(work_item["operations"])
        assert work_item["type"] == "Epic"
        assert fields["System.Title"] == "v1"
        assert fields["System.CreatedDate"] == "2024-01-01T00:00:00Z"
        assert fields["System.CreatedBy"] == {"displayName": "The Octocat", "uniqueName": "octocat"}
        assert "<strong>release</strong>" in fields["System.Description"]
        assert epic.target_url.endswith(f"/{epic.target_id}")

    def test_without_description(self, source_factory, target) -> None:
        milestone = SourceMilestone(number=1, title="Backlog", html_url="https://github.com/o/r/milestone/1")

        epic = MilestoneMigrator(target, UserResolver(source_factory())).migrate(milestone)

        fields = target.fields(target.work_items[epic.target_id]["operations"])
        assert fields["System.Description"].startswith("\n\n<p>Milestone migrated from Github")
        assert "System.CreatedBy" not in fields
