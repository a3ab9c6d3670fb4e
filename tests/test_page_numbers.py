from __future__ import annotations

import pytest

from page_numbers import even_pages, odd_pages, page_range, parse_number


@pytest.mark.parametrize(
    "token, expected",
    [
        ("7", 7),
        ("one", 1),
        ("Twelve", 12),
        ("twenty", 20),
        ("first", 1),
        ("third", 3),
        ("twentieth", 20),
        ("3rd", 3),
        ("  five ", 5),
    ],
)
def test_parse_number_accepts_digits_and_words(token: str, expected: int) -> None:
    assert parse_number(token) == expected


@pytest.mark.parametrize("token", ["", "page", "hundred", "twentyone", "st", "-3"])
def test_parse_number_rejects_other_tokens(token: str) -> None:
    assert parse_number(token) is None


def test_page_range_is_inclusive() -> None:
    assert page_range(2, 4, 10) == {2, 3, 4}


def test_page_range_clamps_both_ends() -> None:
    assert page_range(0, 100, 5) == {1, 2, 3, 4, 5}


def test_page_range_empty_when_start_beyond_document() -> None:
    assert page_range(8, 9, 5) == frozenset()


def test_page_range_empty_document() -> None:
    assert page_range(1, 3, 0) == frozenset()


@pytest.mark.parametrize("n", range(0, 12))
def test_odd_and_even_partition_the_document(n: int) -> None:
    odd = odd_pages(n)
    even = even_pages(n)
    assert not odd & even
    assert odd | even == set(range(1, n + 1))
    assert all(p % 2 == 1 for p in odd)
