from __future__ import annotations

from typing import Iterable, Mapping

from orgcontrib.models import ContributionRecord


def merge(
    records: Iterable[ContributionRecord],
    into: dict[str, int] | None = None,
) -> dict[str, int]:
    """Sum contribution counts per login.

    Passing ``into`` folds the records into an existing mapping, so the
    function can be applied once over every record or repeatedly as results
    arrive. Duplicate logins, even within one repository, are summed.
    """
    totals = into if into is not None else {}
    for record in records:
        totals[record.login] = totals.get(record.login, 0) + record.count
    return totals


def combine(*partials: Mapping[str, int]) -> dict[str, int]:
    """Merge independently built login totals into a new mapping."""
    totals: dict[str, int] = {}
    for partial in partials:
        for login, count in partial.items():
            totals[login] = totals.get(login, 0) + count
    return totals
