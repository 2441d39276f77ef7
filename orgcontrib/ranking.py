from __future__ import annotations

from typing import Mapping

from orgcontrib.models import AggregatedUser, RankedList


def rank(totals: Mapping[str, int]) -> RankedList:
    # login breaks ties so the order never depends on insertion order
    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [AggregatedUser(login=login, total_count=count) for login, count in ordered]


def as_mapping(ranked: RankedList) -> dict[str, int]:
    return {user.login: user.total_count for user in ranked}


def top(ranked: RankedList, limit: int | None) -> RankedList:
    if not limit or limit <= 0:
        return list(ranked)
    return list(ranked[:limit])
