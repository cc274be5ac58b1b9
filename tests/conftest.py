from decimal import Decimal

import pytest

from settleup.models.debt import DebtGraph
from settleup.utils.balance import apply_settlements, calculate_net_balances, is_settled


def make_graph(users, edges, currency="USD"):
    """edges: (from, to, amount) или (from, to, amount, currency)."""
    debts = []
    for edge in edges:
        frm, to, amount = edge[:3]
        ccy = edge[3] if len(edge) > 3 else currency
        debts.append({"from": frm, "to": to, "amount": str(amount), "currency": ccy})
    return DebtGraph.build(users, debts)


def assert_conserves(graph, settlements):
    residual = apply_settlements(calculate_net_balances(graph), settlements)
    assert is_settled(residual), residual


@pytest.fixture
def simple_graph():
    return make_graph(
        ["user1", "user2", "user3"],
        [("user1", "user2", 100), ("user2", "user3", 50)],
    )


@pytest.fixture
def largest_first_graph():
    return make_graph(
        ["user1", "user2", "user3", "user4"],
        [("user1", "user3", 100), ("user2", "user3", 50), ("user2", "user4", 30)],
    )


@pytest.fixture
def friends_graph():
    return make_graph(
        ["user1", "user2", "user3", "user4"],
        [("user1", "user2", 100), ("user3", "user4", 100)],
    )


@pytest.fixture
def friendships():
    return {"user1_user4": 0.9, "user2_user3": 0.2}


@pytest.fixture
def eur_usd_graph():
    return make_graph(
        ["user1", "user2", "user3"],
        [
            ("user1", "user2", 100, "EUR"),
            ("user1", "user2", 50, "EUR"),
            ("user2", "user3", 200, "USD"),
        ],
    )


@pytest.fixture
def eur_usd_rates():
    return {"EUR_USD": Decimal("1.1")}
