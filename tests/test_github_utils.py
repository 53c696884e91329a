"""Tests for GitHub access and conversion of PyGithub objects."""

from __future__ import annotations

import datetime as dt
from unittest.mock import Mock, patch

import pytest
from github import GithubException, UnknownObjectException

from github_to_azure_migrator import github_utils as ghu
from github_to_azure_migrator.exceptions import MigrationError
from github_to_azure_migrator.models import SourceComment, SourceIssue

CREATED = dt.datetime(2024, 1, 15, tzinfo=dt.UTC)


def _user(login: str) -> Mock:
    user = Mock()
    user.login = login
    return user


def _label(name: str) -> Mock:
    label = Mock()
    label.name = name
    return label


def _gh_issue(number: int = 10, *, pull_request: object = None) -> Mock:
    issue = Mock()
    issue.number = number
    issue.title = "Crash"
    issue.html_url = f"https://github.com/o/r/issues/{number}"
    issue.state = "closed"
    issue.body = None
    issue.created_at = CREATED
    issue.closed_at = CREATED
    issue.user = _user("octocat")
    issue.assignee = None
    issue.labels = [_label("bug"), _label("ui")]
    issue.milestone = Mock(number=5)
    issue.comments = 3
    issue.pull_request = pull_request
    return issue


@pytest.mark.unit
class TestGetClient:
    def test_public_api(self) -> None:
        with patch("github_to_azure_migrator.github_utils.Github") as github:
            ghu.get_client("token")

        _, kwargs = github.call_args
        assert "base_url" not in kwargs
        assert kwargs["per_page"] == ghu.PAGE_SIZE

    def test_public_api_host(self) -> None:
        with patch("github_to_azure_migrator.github_utils.Github") as github:
            ghu.get_client("token", "https://api.github.com")

        assert "base_url" not in github.call_args.kwargs

    def test_enterprise_host(self) -> None:
        with patch("github_to_azure_migrator.github_utils.Github") as github:
            ghu.get_client("token", "https://github.example.com/api/v3/")

        assert github.call_args.kwargs["base_url"] == "https://github.example.com/api/v3"

    def test_anonymous(self) -> None:
        with patch("github_to_azure_migrator.github_utils.Github") as github:
            ghu.get_client(None)

        assert github.call_args.kwargs["auth"] is None


@pytest.mark.unit
class TestGetRepo:
    def test_not_found(self) -> None:
        client = Mock()
        client.get_repo.side_effect = UnknownObjectException(404, {"message": "Not Found"}, headers={})

        with pytest.raises(MigrationError, match="o/r not found"):
            ghu.get_repo(client, "o/r")

    def test_other_error(self) -> None:
        client = Mock()
        client.get_repo.side_effect = GithubException(401, {"message": "Bad credentials"}, headers={})

        with pytest.raises(MigrationError, match="Error accessing GitHub repository o/r"):
            ghu.get_repo(client, "o/r")


@pytest.mark.unit
class TestIterPages:
    def test_stops_at_first_empty_page(self) -> None:
        paginated = Mock()
        paginated.get_page.side_effect = [[1, 2], [3], []]

        pages = list(ghu.iter_pages(paginated, str))

        assert pages == [["1", "2"], ["3"]]
        assert [call.args[0] for call in paginated.get_page.call_args_list] == [0, 1, 2]

    def test_pages_are_fetched_lazily(self) -> None:
        paginated = Mock()
        paginated.get_page.side_effect = [[1], [2], []]

        pages = ghu.iter_pages(paginated, str)
        assert next(pages) == ["1"]

        assert paginated.get_page.call_count == 1


@pytest.mark.unit
class TestConversions:
    def test_issue(self) -> None:
        assert ghu.to_source_issue(_gh_issue()) == SourceIssue(
            number=10,
            title="Crash",
            html_url="https://github.com/o/r/issues/10",
            state="closed",
            body="",
            created_at=CREATED,
            closed_at=CREATED,
            author="octocat",
            assignee=None,
            labels=("bug", "ui"),
            milestone_number=5,
            comment_count=3,
            is_pull_request=False,
        )

    def test_issue_listing_pull_request(self) -> None:
        assert ghu.to_source_issue(_gh_issue(pull_request=Mock())).is_pull_request

    def test_comment_of_deleted_user(self) -> None:
        comment = Mock(id=1, body="hi", user=None, created_at=CREATED)
        assert ghu.to_source_comment(comment) == SourceComment(1, "hi", None, CREATED)

    def test_pull_request(self) -> None:
        pull = Mock(number=3, title="Fix", html_url="u", state="open", body=None, draft=None, created_at=CREATED)
        pull.head.ref = "feature"
        pull.base.ref = "main"
        pull.user = _user("octocat")

        result = ghu.to_source_pull_request(pull)

        assert (result.head_ref, result.base_ref, result.body, result.draft) == ("feature", "main", "", False)


@pytest.mark.unit
class TestGitHubSource:
    def test_milestone_url(self) -> None:
        milestone = Mock(number=5, title="v1", description=None, state="open", created_at=CREATED, creator=None)
        repo = Mock(html_url="https://github.com/o/r")
        repo.get_milestones.return_value.get_page.side_effect = [[milestone], []]

        pages = list(ghu.GitHubSource(repo, Mock()).milestone_pages())

        assert pages[0][0].html_url == "https://github.com/o/r/milestone/5"
        assert pages[0][0].description == ""
        repo.get_milestones.assert_called_once_with(state="all")

    def test_issues_seen_while_paging_are_reused(self) -> None:
        gh_issue = _gh_issue()
        gh_issue.get_comments.return_value.get_page.side_effect = [[], []]
        repo = Mock()
        repo.get_issues.return_value.get_page.side_effect = [[gh_issue], []]
        source = ghu.GitHubSource(repo, Mock())

        pages = source.issue_pages()
        next(pages)
        list(source.issue_comment_pages(10))

        repo.get_issue.assert_not_called()
        gh_issue.get_comments.assert_called_once()

    def test_only_the_current_page_is_kept(self) -> None:
        first, second = _gh_issue(1), _gh_issue(2)
        repo = Mock()
        repo.get_issues.return_value.get_page.side_effect = [[first], [second], []]
        repo.get_issue.return_value.get_events.return_value.get_page.side_effect = [[], []]
        source = ghu.GitHubSource(repo, Mock())

        pages = source.issue_pages()
        next(pages)
        next(pages)
        list(source.issue_event_pages(1))

        repo.get_issue.assert_called_once_with(1)
        first.get_events.assert_not_called()

    def test_cache_is_released_after_the_listing(self) -> None:
        gh_issue = _gh_issue()
        repo = Mock()
        repo.get_issues.return_value.get_page.side_effect = [[gh_issue], []]
        repo.get_issue.return_value.get_comments.return_value.get_page.side_effect = [[], []]
        source = ghu.GitHubSource(repo, Mock())

        list(source.issue_pages())
        list(source.issue_comment_pages(10))

        repo.get_issue.assert_called_once_with(10)

    def test_pull_request_conversation_comments(self) -> None:
        pull = Mock(number=3, title="Fix", html_url="u", state="open", body="", draft=False, created_at=CREATED)
        pull.get_issue_comments.return_value.get_page.side_effect = [[], []]
        repo = Mock()
        repo.get_pulls.return_value.get_page.side_effect = [[pull], []]
        source = ghu.GitHubSource(repo, Mock())

        pages = source.pull_request_pages()
        next(pages)
        list(source.issue_comment_pages(3))

        pull.get_issue_comments.assert_called_once()
        repo.get_issue.assert_not_called()

    def test_get_user(self) -> None:
        client = Mock()
        profile = Mock(login="octocat", avatar_url="a", html_url="h")
        profile.name = "The Octocat"
        client.get_user.return_value = profile

        user = ghu.GitHubSource(Mock(), client).get_user("octocat")

        assert (user.login, user.name) == ("octocat", "The Octocat")
        client.get_user.assert_called_once_with("octocat")
