from __future__ import annotations

import enum
import logging
from concurrent.futures import ALL_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable

from orgcontrib.aggregate import combine, merge
from orgcontrib.errors import FetchError, ListingError
from orgcontrib.models import ContributionRecord, FetchOutcome, RankedList, Repository, RunResult
from orgcontrib.ranking import rank

logger = logging.getLogger(__name__)

ListRepositories = Callable[[str], list[Repository]]
FetchContributors = Callable[[str, str], list[ContributionRecord]]
ProgressSink = Callable[[str], None]
ResultSink = Callable[[RankedList], None]


class RunState(enum.Enum):
    IDLE = "idle"
    LISTING = "listing"
    FETCHING_ALL = "fetching_all"
    AGGREGATING = "aggregating"
    RANKING = "ranking"
    DONE = "done"
    FAILED = "failed"


class Orchestrator:
    """Fetch contributors for every repository of an organization and rank them.

    ``concurrency`` sets how many fetches may be in flight. ``1`` processes
    repositories one at a time in listing order, merging each result before
    the next request starts. Anything larger fans the fetches out on a thread
    pool; ``None`` or ``0`` gives every repository its own worker. Both modes
    produce the same ranking for the same fetch results.
    """

    def __init__(
        self,
        list_repositories: ListRepositories,
        fetch_contributors: FetchContributors,
        concurrency: int | None = 1,
        report_progress: ProgressSink | None = None,
        publish_result: ResultSink | None = None,
    ) -> None:
        if concurrency is not None and concurrency < 0:
            raise ValueError("concurrency must be >= 0 or None")
        self.list_repositories = list_repositories
        self.fetch_contributors = fetch_contributors
        self.concurrency = concurrency
        self.report_progress = report_progress
        self.publish_result = publish_result
        self.state = RunState.IDLE

    @property
    def sequential(self) -> bool:
        return self.concurrency == 1

    def run(self, org: str) -> RunResult:
        result = RunResult(org=org)

        self.state = RunState.LISTING
        try:
            repos = list(self.list_repositories(org))
        except ListingError as exc:
            self.state = RunState.FAILED
            logger.error("Listing repositories for %s failed: %s", org, exc)
            self._progress(
                "Error listing repositories. Make sure token and organization name are correct."
            )
            result.status = "failed"
            result.listing_error = str(exc)
            return result

        result.repo_count = len(repos)
        if repos:
            self._progress(f"Found {len(repos)} repositories in {org} organization.")
        else:
            result.status = "empty"
            self._progress(
                f"0 repositories found in {org} organization, make sure your token is correct."
            )

        self.state = RunState.FETCHING_ALL
        if self.sequential:
            totals = self._run_sequential(org, repos, result)
        else:
            totals = self._run_concurrent(org, repos, result)

        self.state = RunState.RANKING
        result.ranked = rank(totals)

        self._progress("Displaying Results")
        if self.publish_result is not None:
            self.publish_result(result.ranked)

        self.state = RunState.DONE
        return result

    def _run_sequential(self, org: str, repos: list[Repository], result: RunResult) -> dict[str, int]:
        totals: dict[str, int] = {}
        for repo in repos:
            outcome = self._fetch(org, repo)
            if outcome.ok:
                merge(outcome.records, into=totals)
            else:
                result.failed_repos.append(repo.name)
        self.state = RunState.AGGREGATING
        self._progress("Aggregating Results")
        return totals

    def _run_concurrent(self, org: str, repos: list[Repository], result: RunResult) -> dict[str, int]:
        if not repos:
            self.state = RunState.AGGREGATING
            self._progress("Aggregating Results")
            return {}

        workers = len(repos) if not self.concurrency else min(self.concurrency, len(repos))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="contributors") as executor:
            futures: list[Future[tuple[FetchOutcome, dict[str, int]]]] = [
                executor.submit(self._fetch_partial, org, repo) for repo in repos
            ]
            wait(futures, return_when=ALL_COMPLETED)

        self.state = RunState.AGGREGATING
        self._progress("Aggregating Results")
        partials: list[dict[str, int]] = []
        for future in futures:
            outcome, partial = future.result()
            if outcome.ok:
                partials.append(partial)
            else:
                result.failed_repos.append(outcome.repo.name)
        return combine(*partials)

    def _fetch_partial(self, org: str, repo: Repository) -> tuple[FetchOutcome, dict[str, int]]:
        outcome = self._fetch(org, repo)
        return outcome, merge(outcome.records)

    def _fetch(self, org: str, repo: Repository) -> FetchOutcome:
        try:
            records = list(self.fetch_contributors(org, repo.name))
        except FetchError as exc:
            logger.warning("Fetching contributors for %s failed: %s", repo.name, exc)
            self._progress(f"Error fetching contributors for repository {repo.name}")
            return FetchOutcome(repo=repo, error=str(exc))
        except Exception as exc:
            logger.exception("Unexpected error fetching contributors for %s", repo.name)
            self._progress(f"Error fetching contributors for repository {repo.name}")
            return FetchOutcome(repo=repo, error=f"{type(exc).__name__}: {exc}")

        self._progress(f"Found {len(records)} users in {repo.name} repository.")
        return FetchOutcome(repo=repo, records=records)

    def _progress(self, message: str) -> None:
        logger.info(message)
        if self.report_progress is None:
            return
        try:
            self.report_progress(message)
        except Exception:
            logger.warning("Progress sink raised; message dropped: %s", message, exc_info=True)


def load_contributors(
    org: str,
    list_repositories: ListRepositories,
    fetch_contributors: FetchContributors,
    concurrency: int | None = 1,
    report_progress: ProgressSink | None = None,
    publish_result: ResultSink | None = None,
) -> RunResult:
    orchestrator = Orchestrator(
        list_repositories,
        fetch_contributors,
        concurrency=concurrency,
        report_progress=report_progress,
        publish_result=publish_result,
    )
    return orchestrator.run(org)
