"""Unit tests for charge calculation with discount limits"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from hockey_gateway.domain.charges import ChargeAmountCalculator, seasonal_usage_summary
from hockey_gateway.domain.exceptions import InvalidArgumentError, InvalidDiscountCodeError
from hockey_gateway.domain.models import ChargeRequest, DiscountCategory, DiscountCode
from hockey_gateway.utils.money import percentage_of
from conftest import FakeCodes, FakeUsageLedger


SEASON = "season_2025"
USER = "user_1"


def make_calculator(codes: FakeCodes, ledger: FakeUsageLedger) -> ChargeAmountCalculator:
    return ChargeAmountCalculator(codes=codes, code_usage=ledger, seasonal_ledger=ledger, currency_symbol="$")


def test_no_code_skips_all_lookups(test50_code: DiscountCode):
    codes = FakeCodes(test50_code)
    ledger = FakeUsageLedger()

    result = make_calculator(codes, ledger).calculate_charge(
        ChargeRequest(base_price_cents=5000, season_id=SEASON, user_id=USER)
    )

    assert result.final_amount == 5000
    assert result.discount_amount == 0
    assert result.discount_code is None
    assert codes.calls == 0
    assert ledger.code_use_calls == 0
    assert ledger.total_used_calls == 0


def test_no_user_skips_all_lookups(test50_code: DiscountCode):
    codes = FakeCodes(test50_code)
    ledger = FakeUsageLedger()

    result = make_calculator(codes, ledger).calculate_charge(
        ChargeRequest(base_price_cents=5000, season_id=SEASON, discount_code="TEST50")
    )

    assert result.final_amount == 5000
    assert result.discount_amount == 0
    assert result.discount_code is None
    assert codes.calls == 0
    assert ledger.code_use_calls == 0
    assert ledger.total_used_calls == 0


def test_full_discount_under_cap(test50_code: DiscountCode):
    """$50 at 50% with no prior usage and a $100 cap"""
    ledger = FakeUsageLedger()

    result = make_calculator(FakeCodes(test50_code), ledger).calculate_charge(
        ChargeRequest(base_price_cents=5000, season_id=SEASON, discount_code="TEST50", user_id=USER)
    )

    assert result.original_amount == 5000
    assert result.final_amount == 2500
    assert result.discount_amount == 2500
    assert result.is_partial_discount is False
    assert result.partial_discount_message is None
    assert result.discount_code.code == "TEST50"
    assert result.seasonal_usage.total_used == 0
    assert result.seasonal_usage.remaining == 10000
    assert result.seasonal_usage.max_allowed == 10000


def test_code_is_normalized_before_lookup(test50_code: DiscountCode):
    result = make_calculator(FakeCodes(test50_code), FakeUsageLedger()).calculate_charge(
        ChargeRequest(base_price_cents=5000, season_id=SEASON, discount_code="  test50 ", user_id=USER)
    )

    assert result.discount_amount == 2500


def test_partial_discount_when_cap_nearly_spent():
    """Cap 5000, 4000 used, nominal 2500 -> only 1000 applied"""
    category = DiscountCategory(
        id="cat_1", name="Scholarship", accounting_code="400", max_discount_per_user_per_season=5000
    )
    code = DiscountCode(id="code_1", code="QUARTER", percentage=Decimal("25"), category=category)
    ledger = FakeUsageLedger(season_totals={(USER, "cat_1", SEASON): 4000})

    result = make_calculator(FakeCodes(code), ledger).calculate_charge(
        ChargeRequest(base_price_cents=10000, season_id=SEASON, discount_code="QUARTER", user_id=USER)
    )

    assert result.discount_amount == 1000
    assert result.final_amount == 10000 - 1000
    assert result.is_partial_discount is True
    assert result.partial_discount_message == (
        "Applied $10.00 discount (you have $10.00 remaining of your $50.00 Scholarship season limit). "
        "You have already used $40.00 in discounts this season."
    )
    assert result.seasonal_usage.remaining == 1000


def test_no_discount_when_cap_reached():
    category = DiscountCategory(
        id="cat_1", name="Scholarship", accounting_code="400", max_discount_per_user_per_season=5000
    )
    code = DiscountCode(id="code_1", code="QUARTER", percentage=Decimal("25"), category=category)
    ledger = FakeUsageLedger(season_totals={(USER, "cat_1", SEASON): 5000})

    result = make_calculator(FakeCodes(code), ledger).calculate_charge(
        ChargeRequest(base_price_cents=10000, season_id=SEASON, discount_code="QUARTER", user_id=USER)
    )

    assert result.discount_amount == 0
    assert result.final_amount == 10000
    assert result.is_partial_discount is False
    assert result.partial_discount_message == (
        "You have already reached your $50.00 season limit for Scholarship discounts."
    )
    assert result.seasonal_usage.remaining == 0


def test_no_discount_when_cap_exceeded_reports_zero_remaining():
    """Usage above the cap (e.g. cap lowered mid-season) clamps remaining to 0"""
    category = DiscountCategory(
        id="cat_1", name="Scholarship", accounting_code="400", max_discount_per_user_per_season=5000
    )
    code = DiscountCode(id="code_1", code="QUARTER", percentage=Decimal("25"), category=category)
    ledger = FakeUsageLedger(season_totals={(USER, "cat_1", SEASON): 7000})

    result = make_calculator(FakeCodes(code), ledger).calculate_charge(
        ChargeRequest(base_price_cents=10000, season_id=SEASON, discount_code="QUARTER", user_id=USER)
    )

    assert result.discount_amount == 0
    assert result.final_amount == 10000
    assert result.seasonal_usage.total_used == 7000
    assert result.seasonal_usage.remaining == 0


def test_zero_percent_code_still_reports_reached_cap():
    """A 0% code on a spent cap applies nothing and still names the limit"""
    category = DiscountCategory(
        id="cat_1", name="Scholarship", accounting_code="400", max_discount_per_user_per_season=5000
    )
    code = DiscountCode(id="code_1", code="ZERO", percentage=Decimal("0"), category=category)
    ledger = FakeUsageLedger(season_totals={(USER, "cat_1", SEASON): 5000})

    result = make_calculator(FakeCodes(code), ledger).calculate_charge(
        ChargeRequest(base_price_cents=10000, season_id=SEASON, discount_code="ZERO", user_id=USER)
    )

    assert result.discount_amount == 0
    assert result.final_amount == 10000
    assert result.is_partial_discount is False
    assert result.partial_discount_message == (
        "You have already reached your $50.00 season limit for Scholarship discounts."
    )


def test_zero_percent_code_under_cap_has_no_message():
    category = DiscountCategory(
        id="cat_1", name="Scholarship", accounting_code="400", max_discount_per_user_per_season=5000
    )
    code = DiscountCode(id="code_1", code="ZERO", percentage=Decimal("0"), category=category)
    ledger = FakeUsageLedger(season_totals={(USER, "cat_1", SEASON): 1000})

    result = make_calculator(FakeCodes(code), ledger).calculate_charge(
        ChargeRequest(base_price_cents=10000, season_id=SEASON, discount_code="ZERO", user_id=USER)
    )

    assert result.discount_amount == 0
    assert result.partial_discount_message is None
    assert result.seasonal_usage.remaining == 4000


def test_zero_cap_allows_no_discount():
    category = DiscountCategory(
        id="cat_1", name="Staff", accounting_code="400", max_discount_per_user_per_season=0
    )
    code = DiscountCode(id="code_1", code="STAFF", percentage=Decimal("20"), category=category)

    result = make_calculator(FakeCodes(code), FakeUsageLedger()).calculate_charge(
        ChargeRequest(base_price_cents=10000, season_id=SEASON, discount_code="STAFF", user_id=USER)
    )

    assert result.discount_amount == 0
    assert result.final_amount == 10000


def test_uncapped_category_skips_season_ledger():
    category = DiscountCategory(id="cat_v", name="Volunteer", accounting_code="401")
    code = DiscountCode(id="code_v", code="VOL20", percentage=Decimal("20"), category=category)
    ledger = FakeUsageLedger()

    result = make_calculator(FakeCodes(code), ledger).calculate_charge(
        ChargeRequest(base_price_cents=10000, season_id=SEASON, discount_code="VOL20", user_id=USER)
    )

    assert result.discount_amount == 2000
    assert result.final_amount == 8000
    assert result.seasonal_usage is None
    assert ledger.total_used_calls == 0


def test_code_limit_reached_blocks_discount_without_reading_season_ledger():
    """usage_limit=1 already used once: no discount, seasonal ledger untouched"""
    category = DiscountCategory(
        id="cat_1", name="Scholarship", accounting_code="400", max_discount_per_user_per_season=100000
    )
    code = DiscountCode(
        id="code_once", code="ONCE", percentage=Decimal("50"), category=category, usage_limit=1
    )
    ledger = FakeUsageLedger(code_uses={(USER, "code_once"): 1})

    result = make_calculator(FakeCodes(code), ledger).calculate_charge(
        ChargeRequest(base_price_cents=5000, season_id=SEASON, discount_code="ONCE", user_id=USER)
    )

    assert result.discount_amount == 0
    assert result.final_amount == 5000
    assert result.discount_code.code == "ONCE"
    assert result.is_partial_discount is False
    assert ledger.code_use_calls == 1
    assert ledger.total_used_calls == 0


def test_code_limit_not_yet_reached_continues_to_cap_check():
    category = DiscountCategory(
        id="cat_1", name="Scholarship", accounting_code="400", max_discount_per_user_per_season=100000
    )
    code = DiscountCode(
        id="code_twice", code="TWICE", percentage=Decimal("50"), category=category, usage_limit=2
    )
    ledger = FakeUsageLedger(code_uses={(USER, "code_twice"): 1})

    result = make_calculator(FakeCodes(code), ledger).calculate_charge(
        ChargeRequest(base_price_cents=5000, season_id=SEASON, discount_code="TWICE", user_id=USER)
    )

    assert result.discount_amount == 2500
    assert ledger.total_used_calls == 1


def test_unknown_code_raises(test50_code: DiscountCode):
    with pytest.raises(InvalidDiscountCodeError):
        make_calculator(FakeCodes(test50_code), FakeUsageLedger()).calculate_charge(
            ChargeRequest(base_price_cents=5000, season_id=SEASON, discount_code="NOPE", user_id=USER)
        )


def test_inactive_code_raises(scholarship_category: DiscountCategory):
    code = DiscountCode(
        id="c", code="OFF", percentage=Decimal("10"), category=scholarship_category, is_active=False
    )
    with pytest.raises(InvalidDiscountCodeError):
        make_calculator(FakeCodes(code), FakeUsageLedger()).calculate_charge(
            ChargeRequest(base_price_cents=5000, season_id=SEASON, discount_code="OFF", user_id=USER)
        )


def test_inactive_category_raises():
    category = DiscountCategory(id="cat_x", name="Retired", accounting_code="499", is_active=False)
    code = DiscountCode(id="c", code="RETIRED", percentage=Decimal("10"), category=category)
    with pytest.raises(InvalidDiscountCodeError):
        make_calculator(FakeCodes(code), FakeUsageLedger()).calculate_charge(
            ChargeRequest(base_price_cents=5000, season_id=SEASON, discount_code="RETIRED", user_id=USER)
        )


def test_code_outside_validity_window_raises(scholarship_category: DiscountCategory):
    today = date(2025, 10, 1)
    early = DiscountCode(
        id="c1", code="EARLY", percentage=Decimal("10"), category=scholarship_category,
        valid_from=today + timedelta(days=1),
    )
    late = DiscountCode(
        id="c2", code="LATE", percentage=Decimal("10"), category=scholarship_category,
        valid_until=today - timedelta(days=1),
    )
    calculator = make_calculator(FakeCodes(early, late), FakeUsageLedger())

    with pytest.raises(InvalidDiscountCodeError, match="not yet valid"):
        calculator.calculate_charge(
            ChargeRequest(base_price_cents=5000, season_id=SEASON, discount_code="EARLY", user_id=USER),
            today=today,
        )
    with pytest.raises(InvalidDiscountCodeError, match="expired"):
        calculator.calculate_charge(
            ChargeRequest(base_price_cents=5000, season_id=SEASON, discount_code="LATE", user_id=USER),
            today=today,
        )


def test_code_valid_on_boundary_days(scholarship_category: DiscountCategory):
    today = date(2025, 10, 1)
    code = DiscountCode(
        id="c", code="DAY", percentage=Decimal("10"), category=scholarship_category,
        valid_from=today, valid_until=today,
    )

    result = make_calculator(FakeCodes(code), FakeUsageLedger()).calculate_charge(
        ChargeRequest(base_price_cents=5000, season_id=SEASON, discount_code="DAY", user_id=USER),
        today=today,
    )

    assert result.discount_amount == 500


def test_full_price_discount_charges_nothing():
    category = DiscountCategory(id="cat_v", name="Volunteer", accounting_code="401")
    code = DiscountCode(id="c", code="FREE", percentage=Decimal("100"), category=category)

    result = make_calculator(FakeCodes(code), FakeUsageLedger()).calculate_charge(
        ChargeRequest(base_price_cents=4999, season_id=SEASON, discount_code="FREE", user_id=USER)
    )

    assert result.discount_amount == 4999
    assert result.final_amount == 0


def test_negative_base_price_rejected(test50_code: DiscountCode):
    with pytest.raises(InvalidArgumentError):
        make_calculator(FakeCodes(test50_code), FakeUsageLedger()).calculate_charge(
            ChargeRequest(base_price_cents=-1, season_id=SEASON)
        )


@pytest.mark.parametrize(
    "amount, percentage, expected",
    [
        (1, Decimal("10"), 0),
        (1, Decimal("50"), 1),
        (3, Decimal("50"), 2),
        (100, Decimal("12.50"), 13),
        (999, Decimal("33.33"), 333),
        (0, Decimal("50"), 0),
    ],
)
def test_percentage_rounds_half_up(amount, percentage, expected):
    assert percentage_of(amount, percentage) == expected


def test_seasonal_usage_summary_without_cap_is_none():
    category = DiscountCategory(id="cat_v", name="Volunteer", accounting_code="401")
    ledger = FakeUsageLedger()

    assert seasonal_usage_summary(category, USER, SEASON, ledger) is None
    assert ledger.total_used_calls == 0


def test_seasonal_usage_summary_with_cap(scholarship_category: DiscountCategory):
    ledger = FakeUsageLedger(season_totals={(USER, "cat_scholarship", SEASON): 2500})

    usage = seasonal_usage_summary(scholarship_category, USER, SEASON, ledger)

    assert usage.total_used == 2500
    assert usage.remaining == 7500
    assert usage.max_allowed == 10000
