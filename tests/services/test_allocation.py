import pytest

from hoa_billing.core.exceptions import ValidationError
from hoa_billing.core.money import Money
from hoa_billing.models.statement import CATEGORY_ORDER
from hoa_billing.services.allocation import (
    PaymentPurpose,
    allocate_payment,
    parse_purpose,
    remaining_by_category,
)


def test_all_purpose_splits_proportionally(statement_factory):
    statement = statement_factory()

    paid = allocate_payment(statement, "All", Money("450.00"))

    assert paid.water == Money("250.00")
    assert paid.hoa == Money("150.00")
    assert paid.garbage == Money("50.00")


def test_single_category_adds_full_amount_only_there(statement_factory):
    statement = statement_factory(paid=("100", "20", "5"))

    paid = allocate_payment(statement, "Water Bill", Money("400.00"))

    assert paid.water == Money("500.00")
    assert paid.hoa == Money("20")
    assert paid.garbage == Money("5")


@pytest.mark.parametrize("purpose, field", [
    ("Water Bill", "water"),
    ("HOA Maintenance Fees", "hoa"),
    ("Garbage", "garbage"),
])
def test_single_category_overpayment_is_recorded_as_is(statement_factory, purpose, field):
    statement = statement_factory()

    paid = allocate_payment(statement, purpose, Money("1000.00"))

    assert getattr(paid, field) == Money("1000.00")


def test_allocation_does_not_touch_the_statement(statement_factory):
    statement = statement_factory()

    allocate_payment(statement, "All", Money("450.00"))

    assert statement.paid_breakdown.total() == Money("0")


@pytest.mark.parametrize("charges, payment", [
    (("500.00", "300.00", "100.00"), "450.00"),
    (("333.33", "333.33", "333.34"), "100.00"),
    (("10.00", "20.00", "70.00"), "0.01"),
    (("123.45", "67.89", "10.10"), "200.00"),
    (("1.00", "1.00", "1.00"), "3.00"),
])
def test_all_purpose_shares_sum_to_payment(statement_factory, charges, payment):
    statement = statement_factory(water=charges[0], hoa=charges[1], garbage=charges[2])
    remaining = remaining_by_category(statement)

    paid = allocate_payment(statement, "All", Money(payment))

    assert paid.total() == Money(payment)
    for category in CATEGORY_ORDER:
        assert paid.get(category) <= remaining[category]


def test_all_purpose_overpayment_caps_each_category(statement_factory):
    statement = statement_factory()

    paid = allocate_payment(statement, "All", Money("1000.00"))

    # The 100.00 excess is not reflected in the breakdown
    assert paid.water == Money("500.00")
    assert paid.hoa == Money("300.00")
    assert paid.garbage == Money("100.00")


def test_all_purpose_on_fully_covered_statement_allocates_nothing(statement_factory):
    statement = statement_factory(paid=("500", "300", "100"), total_paid="900")

    paid = allocate_payment(statement, "All", Money("50.00"))

    assert paid == statement.paid_breakdown


def test_all_purpose_with_overpaid_category_uses_negative_remaining(statement_factory):
    # water is overpaid by 100, so its remaining is -100 and is not floored
    statement = statement_factory(paid=("600", "0", "0"), total_paid="600")

    paid = allocate_payment(statement, "All", Money("150.00"))

    # water share = 150 * -100/300 = -50, capped by min(-50, -100) = -100
    assert paid.water == Money("500.00")
    assert paid.hoa == Money("150.00")
    assert paid.garbage == Money("50.00")


def test_all_purpose_without_amount_pays_everything_remaining(statement_factory):
    statement = statement_factory(paid=("100", "0", "0"), total_paid="100")

    paid = allocate_payment(statement, "All", None)

    assert paid.water == Money("500")
    assert paid.hoa == Money("300")
    assert paid.garbage == Money("100")


def test_all_purpose_without_amount_on_covered_statement_is_rejected(statement_factory):
    statement = statement_factory(paid=("500", "300", "100"), total_paid="900")

    with pytest.raises(ValidationError):
        allocate_payment(statement, "All", None)


@pytest.mark.parametrize("amount", [None, "0", "-5.00", "NaN"])
def test_single_category_rejects_missing_or_non_positive_amount(statement_factory, amount):
    statement = statement_factory()

    with pytest.raises(ValidationError):
        allocate_payment(statement, "Garbage", amount)


def test_unknown_purpose_is_rejected(statement_factory):
    with pytest.raises(ValidationError):
        allocate_payment(statement_factory(), "Electricity", Money("10"))


def test_parse_purpose():
    assert parse_purpose("HOA Maintenance Fees") is PaymentPurpose.HOA_MAINTENANCE_FEES
    assert parse_purpose(PaymentPurpose.ALL) is PaymentPurpose.ALL


@pytest.mark.parametrize("purpose", ["All", "Water Bill"])
def test_fractions_of_a_cent_are_rejected(statement_factory, purpose):
    with pytest.raises(ValidationError):
        allocate_payment(statement_factory(), purpose, Money("0.005"))


def test_whole_cent_amounts_keep_stored_totals_consistent(statement_factory):
    statement = statement_factory()

    paid = allocate_payment(statement, "All", Money("100.10"))

    assert paid.total() == Money("100.10")
    assert all(paid.get(c).is_whole_cents() for c in CATEGORY_ORDER)
