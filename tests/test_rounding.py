from decimal import Decimal

from settleup.models.settlement import Settlement
from settleup.utils.balance import apply_settlements, is_settled
from settleup.utils.rounding import plan_flows, round_plan_to_cents, round_to_cents_preserving_sum


def _plan(*items):
    return [Settlement(a, b, Decimal(str(x)), "USD") for a, b, x in items]


def test_largest_remainder_keeps_the_sum():
    rounded = round_to_cents_preserving_sum(
        {"a": Decimal("1.005"), "b": Decimal("1.005"), "c": Decimal("-2.01")}
    )
    assert rounded == {"a": Decimal("1.01"), "b": Decimal("1.00"), "c": Decimal("-2.01")}
    assert sum(rounded.values()) == 0


def test_sub_cent_payments_to_many_creditors():
    exact = _plan(*[("c", f"a{i}", "1.005") for i in range(6)])
    balances = plan_flows(exact)

    rounded = round_plan_to_cents(exact)

    assert [s.amount for s in rounded] == [Decimal("1.01")] * 3 + [Decimal("1.00")] * 3
    assert sum(s.amount for s in rounded) == Decimal("6.03")
    assert is_settled(apply_settlements(balances, rounded))


def test_whole_cents_are_untouched():
    exact = _plan(("user1", "user2", 50), ("user1", "user3", "49.99"))
    assert round_plan_to_cents(exact) == exact


def test_payment_below_half_a_cent_disappears():
    assert round_plan_to_cents(_plan(("a", "b", "0.004"))) == []


def test_cycle_in_plan_still_conserves():
    exact = _plan(("a", "b", "1.005"), ("b", "c", "1.005"), ("c", "a", "1.005"))
    rounded = round_plan_to_cents(exact)
    assert [s.amount for s in rounded] == [Decimal("1.01")] * 3
    assert all(v == 0 for v in plan_flows(rounded).values())


def test_mixed_sub_cent_plan_stays_within_a_cent_per_user():
    exact = _plan(
        ("d1", "c1", "0.333"),
        ("d1", "c2", "0.333"),
        ("d2", "c2", "0.667"),
        ("d2", "c3", "10.1249"),
        ("d3", "c3", "0.0051"),
    )
    exact_balances = plan_flows(exact)

    rounded = round_plan_to_cents(exact)

    assert all(s.amount == s.amount.quantize(Decimal("0.01")) and s.amount > 0 for s in rounded)
    assert is_settled(apply_settlements(exact_balances, rounded))
