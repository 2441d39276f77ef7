from __future__ import annotations

import base64
import logging
import threading
from typing import Any

import pytest
import requests

from orgcontrib.errors import FetchError, ListingError
from orgcontrib.github import GitHubClient, build_auth_headers, fetch_repo_contributors, list_org_repositories
from orgcontrib.models import ContributionRecord, Repository


class Response:
    def __init__(self, status_code: int, payload: Any = None, invalid_json: bool = False) -> None:
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    def __init__(self, responses: dict[str, Response | Exception]) -> None:
        self.responses = responses
        self.requests: list[dict[str, Any]] = []

    def get(self, url: str, headers=None, params=None, timeout=None) -> Response:
        self.requests.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        outcome = self.responses[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


REPOS_URL = "https://api.github.com/orgs/acme/repos"
CONTRIB_URL = "https://api.github.com/repos/acme/widgets/contributors"


def test_lists_repository_names() -> None:
    session = FakeSession(
        {REPOS_URL: Response(200, [{"name": "widgets"}, {"name": "gadgets"}, {"id": 3}])}
    )

    repos = list_org_repositories("acme", session=session)

    assert repos == [Repository("widgets"), Repository("gadgets")]
    assert session.requests[0]["params"] == {"per_page": 100}


def test_empty_organization_lists_no_repositories() -> None:
    session = FakeSession({REPOS_URL: Response(200, [])})

    assert list_org_repositories("acme", session=session) == []


@pytest.mark.parametrize(
    ("outcome", "fragment"),
    [
        (Response(401), "access denied"),
        (Response(403), "access denied"),
        (Response(404), "not found"),
        (Response(500), "(500)"),
        (Response(200, {"message": "weird"}), "Unexpected response"),
        (Response(200, invalid_json=True), "Unexpected response"),
        (requests.ConnectionError("dns failure"), "failed"),
    ],
)
def test_listing_failures_raise_listing_error(outcome, fragment: str) -> None:
    session = FakeSession({REPOS_URL: outcome})

    with pytest.raises(ListingError) as excinfo:
        list_org_repositories("acme", session=session)

    assert fragment in str(excinfo.value)


def test_parses_contributor_records() -> None:
    session = FakeSession(
        {
            CONTRIB_URL: Response(
                200,
                [
                    {"login": "alice", "contributions": 12},
                    {"login": "bob", "contributions": "3"},
                    {"contributions": 4},
                    {"login": "carol"},
                ],
            )
        }
    )

    records = fetch_repo_contributors("acme", "widgets", session=session)

    assert records == [
        ContributionRecord("alice", 12),
        ContributionRecord("bob", 3),
        ContributionRecord("carol", 0),
    ]


def test_no_content_means_zero_contributors() -> None:
    session = FakeSession({CONTRIB_URL: Response(204)})

    assert fetch_repo_contributors("acme", "widgets", session=session) == []


@pytest.mark.parametrize(
    "outcome",
    [
        Response(404),
        Response(502),
        Response(200, None),
        Response(200, invalid_json=True),
        requests.Timeout("read timed out"),
    ],
)
def test_fetch_failures_raise_fetch_error(outcome) -> None:
    session = FakeSession({CONTRIB_URL: outcome})

    with pytest.raises(FetchError) as excinfo:
        fetch_repo_contributors("acme", "widgets", session=session)

    assert excinfo.value.repo == "widgets"


def test_token_auth_header() -> None:
    headers = build_auth_headers(token="ghp_token")

    assert headers["Authorization"] == "Bearer ghp_token"
    assert headers["Accept"] == "application/vnd.github.v3+json"


def test_basic_auth_header() -> None:
    headers = build_auth_headers(username="octo", password="secret")

    expected = base64.b64encode(b"octo:secret").decode("ascii")
    assert headers["Authorization"] == f"Basic {expected}"


def test_no_credentials_sends_no_authorization() -> None:
    assert "Authorization" not in build_auth_headers()


def test_client_reads_token_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "env_token")

    client = GitHubClient(session=FakeSession({}))

    assert client.headers["Authorization"] == "Bearer env_token"


def test_client_uses_configured_base_url_and_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    session = FakeSession(
        {
            "https://ghe.example.com/api/v3/orgs/acme/repos": Response(200, [{"name": "widgets"}]),
            "https://ghe.example.com/api/v3/repos/acme/widgets/contributors": Response(
                200, [{"login": "alice", "contributions": 1}]
            ),
        }
    )
    client = GitHubClient(base_url="https://ghe.example.com/api/v3/", timeout=5, session=session)

    assert client.list_repositories("acme") == [Repository("widgets")]
    assert client.fetch_contributors("acme", "widgets") == [ContributionRecord("alice", 1)]
    assert all(request["timeout"] == 5 for request in session.requests)
    assert "Authorization" not in session.requests[0]["headers"]


def test_client_gives_each_thread_its_own_session(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("orgcontrib.github.requests.Session", lambda: object())
    client = GitHubClient(token="ghp_token")
    sessions: dict[str, object] = {}

    def grab(name: str) -> None:
        first = client.session
        assert client.session is first
        sessions[name] = first

    workers = [threading.Thread(target=grab, args=(f"worker-{idx}",)) for idx in range(2)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    grab("main")

    assert len({id(session) for session in sessions.values()}) == 3


def test_client_reuses_supplied_session_across_threads() -> None:
    session = FakeSession({})
    client = GitHubClient(token="ghp_token", session=session)
    seen: list[object] = []

    worker = threading.Thread(target=lambda: seen.append(client.session))
    worker.start()
    worker.join()

    assert seen == [session]
    assert client.session is session


def test_transport_failure_is_not_logged_as_warning(caplog: pytest.LogCaptureFixture) -> None:
    session = FakeSession({CONTRIB_URL: requests.ConnectionError("dns failure")})

    with caplog.at_level(logging.DEBUG, logger="orgcontrib.github"):
        with pytest.raises(FetchError):
            fetch_repo_contributors("acme", "widgets", session=session)

    github_records = [record for record in caplog.records if record.name == "orgcontrib.github"]
    assert github_records
    assert all(record.levelno == logging.DEBUG for record in github_records)
    assert "dns failure" in github_records[0].getMessage()


def test_unusable_contribution_counts_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    session = FakeSession(
        {
            CONTRIB_URL: Response(
                200,
                [
                    {"login": "alice", "contributions": 7},
                    {"login": "bob", "contributions": "lots"},
                    {"login": "carol", "contributions": 2.9},
                ],
            )
        }
    )

    with caplog.at_level(logging.DEBUG, logger="orgcontrib.github"):
        records = fetch_repo_contributors("acme", "widgets", session=session)

    assert records == [
        ContributionRecord("alice", 7),
        ContributionRecord("bob", 0),
        ContributionRecord("carol", 2),
    ]
    messages = [record.getMessage() for record in caplog.records if record.name == "orgcontrib.github"]
    assert any("'lots'" in message and "bob" in message for message in messages)
    assert any("2.9" in message and "carol" in message for message in messages)
    assert not any("alice" in message for message in messages)
