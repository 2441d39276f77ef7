from __future__ import annotations


class OrgContributorsError(Exception):
    """Base class for failures talking to the hosting API."""


class ListingError(OrgContributorsError):
    """The organization's repositories could not be enumerated."""


class FetchError(OrgContributorsError):
    """Contributors for a single repository could not be fetched."""

    def __init__(self, repo: str, message: str) -> None:
        super().__init__(message)
        self.repo = repo
