from __future__ import annotations

import base64
import logging
import os
import threading
from typing import Any

import requests

from orgcontrib.errors import FetchError, ListingError
from orgcontrib.models import ContributionRecord, Repository

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_TIMEOUT = 30
PER_PAGE = 100


def build_auth_headers(
    token: str | None = None,
    username: str | None = None,
    password: str | None = None,
) -> dict[str, str]:
    headers = {"Accept": "application/vnd.github.v3+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    elif username and password:
        raw = f"{username}:{password}".encode("utf-8")
        headers["Authorization"] = "Basic " + base64.b64encode(raw).decode("ascii")
    return headers


class GitHubClient:
    """Thin wrapper over the REST endpoints the orchestrator needs.

    requests does not promise that a Session is thread-safe, so unless a
    session is passed in each calling thread gets its own.
    """

    def __init__(
        self,
        token: str | None = None,
        username: str | None = None,
        password: str | None = None,
        base_url: str = DEFAULT_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        if token is None and not (username and password):
            token = os.getenv("GITHUB_TOKEN")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = build_auth_headers(token, username, password)
        self._shared_session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def list_repositories(self, org: str) -> list[Repository]:
        return list_org_repositories(
            org,
            session=self.session,
            headers=self.headers,
            base_url=self.base_url,
            timeout=self.timeout,
        )

    def fetch_contributors(self, org: str, repo: str) -> list[ContributionRecord]:
        return fetch_repo_contributors(
            org,
            repo,
            session=self.session,
            headers=self.headers,
            base_url=self.base_url,
            timeout=self.timeout,
        )


def list_org_repositories(
    org: str,
    session: requests.Session,
    headers: dict[str, str] | None = None,
    base_url: str = DEFAULT_API_BASE,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[Repository]:
    url = f"{base_url}/orgs/{org}/repos"
    response = _safe_get(session, url, headers=headers, params={"per_page": PER_PAGE}, timeout=timeout)
    if response is None:
        raise ListingError(f"Request for repositories of {org} failed")

    if response.status_code in {401, 403}:
        raise ListingError(
            f"GitHub access denied listing {org}; make sure token and organization name are correct"
        )

    if response.status_code == 404:
        raise ListingError(f"GitHub organization not found: {org}")

    if response.status_code >= 400:
        raise ListingError(f"GitHub API error ({response.status_code}) listing {org}")

    data = _json_body(response)
    if not isinstance(data, list):
        raise ListingError(f"Unexpected response body listing repositories of {org}")

    repos: list[Repository] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        name = str(item.get("name") or "")
        if name:
            repos.append(Repository(name=name))

    logger.debug("Listed %d repositories for %s", len(repos), org)
    return repos


def fetch_repo_contributors(
    org: str,
    repo: str,
    session: requests.Session,
    headers: dict[str, str] | None = None,
    base_url: str = DEFAULT_API_BASE,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[ContributionRecord]:
    url = f"{base_url}/repos/{org}/{repo}/contributors"
    response = _safe_get(session, url, headers=headers, params={"per_page": PER_PAGE}, timeout=timeout)
    if response is None:
        raise FetchError(repo, f"GitHub request failed for {org}/{repo}")

    # GitHub answers 204 for repositories without any commits
    if response.status_code == 204:
        return []

    if response.status_code == 404:
        raise FetchError(repo, f"GitHub repo not found or unreachable: {org}/{repo}")

    if response.status_code >= 400:
        raise FetchError(repo, f"GitHub API error ({response.status_code}) for {org}/{repo}")

    data = _json_body(response)
    if not isinstance(data, list):
        raise FetchError(repo, f"Unexpected response body for {org}/{repo}")

    records: list[ContributionRecord] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        login = str(item.get("login") or "")
        if not login:
            continue
        count = _parse_count(item.get("contributions"), login, repo)
        records.append(ContributionRecord(login=login, count=count))
    return records


def _safe_get(
    session: requests.Session,
    url: str,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> requests.Response | None:
    try:
        return session.get(url, headers=headers, params=params, timeout=timeout)
    except requests.RequestException as exc:
        logger.debug("GET %s failed: %s", url, exc)
        return None


def _json_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _parse_count(value: Any, login: str, repo: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return max(value, 0)
    try:
        count = int(value)
    except (TypeError, ValueError):
        logger.debug("Unusable contributions %r for %s in %s; counting 0", value, login, repo)
        return 0
    logger.debug("Coerced contributions %r to %d for %s in %s", value, count, login, repo)
    return max(count, 0)
