from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

RunStatus = Literal["ok", "empty", "failed"]


@dataclass(frozen=True)
class Repository:
    name: str


@dataclass(frozen=True)
class ContributionRecord:
    login: str
    count: int

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"Contribution count for {self.login} must be >= 0, got {self.count}")


@dataclass(frozen=True)
class AggregatedUser:
    login: str
    total_count: int


RankedList = list[AggregatedUser]


@dataclass(frozen=True)
class FetchOutcome:
    repo: Repository
    records: list[ContributionRecord] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunResult:
    org: str
    repo_count: int = 0
    ranked: RankedList = field(default_factory=list)
    failed_repos: list[str] = field(default_factory=list)
    status: RunStatus = "ok"
    listing_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status != "failed"
