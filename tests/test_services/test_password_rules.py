"""Tests for bank-specific PDF password derivation."""

from finmail.models.profile import Identifiers
from finmail.services.password_rules import (
    find_rule,
    missing_placeholder,
    mobile_last5_dob_ddmmyy,
    parse_dob,
)


def test_kotak_password(profile):
    # +91 98765 43210 -> 43210, 1990-07-15 -> 150790
    assert mobile_last5_dob_ddmmyy(profile) == "43210150790"


def test_missing_phone_placeholder(profile):
    profile.identifiers = Identifiers(date_of_birth="15/07/1990")
    assert mobile_last5_dob_ddmmyy(profile) == "{MOBILE} needed"


def test_missing_both(profile):
    profile.identifiers = Identifiers()
    assert mobile_last5_dob_ddmmyy(profile) == "{MOBILE} and {DOB} needed"
    assert mobile_last5_dob_ddmmyy(None) == "{MOBILE} and {DOB} needed"


def test_dob_formats():
    assert parse_dob("1990-07-15").day == 15
    assert parse_dob("15-07-1990").month == 7
    assert parse_dob("15.07.1990").year == 1990
    assert parse_dob("July fifteenth") is None
    assert missing_placeholder("{DOB}") == "{DOB} needed"


def test_find_rule_by_domain():
    assert find_rule("kotak.com").bank_name == "Kotak Mahindra Bank"
    assert find_rule("alerts.kotak.bank.in") is not None
    assert find_rule("notkotak.com") is None
    assert find_rule("hdfcbank.net") is None
    assert find_rule("") is None
