from __future__ import annotations

from functools import cmp_to_key

from attendance_register.ordering import (
    RegisterIdentity,
    compare_identities,
    parse_register_number,
    roster_names,
    sort_identities,
)


def test_numeric_then_alphanumeric_then_empty():
    people = [
        RegisterIdentity("Dana", "10"),
        RegisterIdentity("Eli", "2"),
        RegisterIdentity("Fay", "A1"),
        RegisterIdentity("Gus", ""),
    ]

    ordered = sort_identities(people)

    assert [person.register_number for person in ordered] == ["2", "10", "A1", ""]


def test_groups_are_ordered_internally():
    people = [
        RegisterIdentity("zoe", ""),
        RegisterIdentity("b-reg", "b7"),
        RegisterIdentity("n100", "100"),
        RegisterIdentity("Adam", ""),
        RegisterIdentity("a-reg", "A9"),
        RegisterIdentity("n9", "009"),
    ]

    ordered = sort_identities(people)

    assert [person.name for person in ordered] == ["n9", "n100", "a-reg", "b-reg", "Adam", "zoe"]


def test_whitespace_and_leading_zeros_are_numeric():
    assert parse_register_number(" 007 ") == 7
    assert parse_register_number("12a") is None
    assert parse_register_number("1_000") is None
    assert parse_register_number("") is None


def test_comparator_agrees_with_sort():
    people = [
        RegisterIdentity("x", "B2"),
        RegisterIdentity("y", "3"),
        RegisterIdentity("w", ""),
        RegisterIdentity("v", "a1"),
        RegisterIdentity("u", "1"),
    ]

    assert sorted(people, key=cmp_to_key(compare_identities)) == sort_identities(people)


def test_comparator_is_antisymmetric():
    a = RegisterIdentity("a", "5")
    b = RegisterIdentity("b", "X5")

    assert compare_identities(a, b) == -1
    assert compare_identities(b, a) == 1
    assert compare_identities(a, a) == 0


def test_equal_names_without_register_compare_equal():
    assert compare_identities(RegisterIdentity("Sam"), RegisterIdentity("sam")) == 0


def test_structural_equality_and_dict_round_trip():
    identity = RegisterIdentity("Sam", "42")

    assert identity == RegisterIdentity("Sam", "42")
    assert identity != RegisterIdentity("Sam", "43")
    assert identity.to_dict() == {"name": "Sam", "registerNumber": "42"}
    assert RegisterIdentity.from_dict({"name": "Sam"}) == RegisterIdentity("Sam", "")


def test_roster_names_skip_missing_register_numbers():
    names = roster_names([RegisterIdentity("Sam", "42"), RegisterIdentity("Kim")])

    assert names == {"42": "Sam"}
