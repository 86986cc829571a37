from datetime import date

import pytest

from femo_client.domain.registration import (
    age_on,
    credential_problems,
    femo_mail_name_problems,
    identity_problems,
)


@pytest.mark.parametrize(
    "birthday, today, expected",
    [
        (date(2010, 6, 15), date(2023, 6, 15), 13),
        (date(2010, 6, 15), date(2023, 6, 14), 12),
        (date(2008, 2, 29), date(2021, 2, 28), 12),
        (date(2008, 2, 29), date(2021, 3, 1), 13),
    ],
)
def test_age_counts_whole_years(birthday, today, expected):
    assert age_on(birthday, today) == expected


def test_identity_on_thirteenth_birthday_is_accepted():
    assert identity_problems("Ada", "Lovelace", "2010-06-15", today=date(2023, 6, 15)) == []
    assert identity_problems("Ada", "Lovelace", "2010-06-15", today=date(2023, 6, 14)) == [
        "You must be at least 13 years old"
    ]


def test_identity_requires_every_field():
    assert identity_problems("", "", "") == [
        "First name is required",
        "Last name is required",
        "Birthday is required",
    ]


def test_credentials_need_confirmation():
    problems = credential_problems("ada@example.com", "Sup3r$ecret", "", "GB", True, True)

    assert problems == ["Confirm your password"]


@pytest.mark.parametrize(
    "name, ok",
    [("ada", True), ("ada.lovelace_1815-x", True), ("", False), ("ada lovelace", False), ("ada@femo", False)],
)
def test_femo_mail_name_rules(name, ok):
    assert (femo_mail_name_problems(name) == []) is ok
