from __future__ import annotations

from orgcontrib.models import AggregatedUser
from orgcontrib.ranking import as_mapping, rank, top


def test_ranks_by_total_descending() -> None:
    ranked = rank({"alice": 17, "bob": 7, "carol": 9})

    assert [user.login for user in ranked] == ["alice", "carol", "bob"]
    assert ranked[0] == AggregatedUser(login="alice", total_count=17)


def test_ties_are_broken_by_login_ascending() -> None:
    ranked = rank({"zed": 4, "amy": 4, "Bob": 4, "max": 10})

    assert [user.login for user in ranked] == ["max", "Bob", "amy", "zed"]


def test_ranking_ignores_insertion_order() -> None:
    forward = {"alice": 3, "bob": 3, "carol": 1}
    backward = {"carol": 1, "bob": 3, "alice": 3}

    assert rank(forward) == rank(backward)


def test_reranking_is_idempotent() -> None:
    ranked = rank({"alice": 2, "bob": 5, "carol": 2, "dave": 0})

    assert rank(as_mapping(ranked)) == ranked


def test_empty_mapping_ranks_to_empty_list() -> None:
    assert rank({}) == []


def test_top_limits_rows() -> None:
    ranked = rank({"alice": 3, "bob": 2, "carol": 1})

    assert [user.login for user in top(ranked, 2)] == ["alice", "bob"]
    assert top(ranked, 0) == ranked
    assert top(ranked, None) == ranked
