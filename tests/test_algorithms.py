import random
from decimal import Decimal

import pytest

from conftest import assert_conserves, make_graph
from settleup.algorithms.friend_preference import friend_preference_settle_up
from settleup.algorithms.greedy import greedy_settle_up, split_creditors_debtors
from settleup.algorithms.min_cash_flow import min_cash_flow_settle_up
from settleup.algorithms.registry import ALGORITHMS, SettleAlgorithm, get_algorithm, resolve_algorithm
from settleup.errors import UnknownAlgorithmError
from settleup.models.settlement import Settlement
from settleup.utils.balance import calculate_net_balances

ALL = [greedy_settle_up, min_cash_flow_settle_up, friend_preference_settle_up]


def _triples(plan):
    return [(s.payer_id, s.receiver_id, s.amount) for s in plan]


def test_split_creditors_debtors_is_stable_on_ties():
    creditors, debtors = split_creditors_debtors(
        {"a": Decimal("10"), "b": Decimal("-5"), "c": Decimal("10"), "d": Decimal("-15")}
    )
    assert creditors == [("a", Decimal("10")), ("c", Decimal("10"))]
    assert debtors == [("d", Decimal("15")), ("b", Decimal("5"))]


class TestGreedy:
    def test_simple_debts(self, simple_graph):
        plan = greedy_settle_up(calculate_net_balances(simple_graph), "USD")
        assert _triples(plan) == [("user1", "user2", 50), ("user1", "user3", 50)]
        assert all(s.currency == "USD" for s in plan)

    def test_largest_debtor_pays_largest_creditor_first(self, largest_first_graph):
        plan = greedy_settle_up(calculate_net_balances(largest_first_graph), "USD")

        assert plan[0] == Settlement("user1", "user3", Decimal("100"), "USD")
        assert len(plan) <= 3
        assert_conserves(largest_first_graph, plan)

    def test_uneven_amounts(self):
        graph = make_graph(
            ["user1", "user2", "user3", "user4"],
            [("user1", "user2", "73.42"), ("user3", "user2", "25.18"), ("user3", "user4", "50.33")],
        )
        plan = greedy_settle_up(calculate_net_balances(graph), "USD")
        assert_conserves(graph, plan)

    def test_min_cash_flow_matches_greedy(self, largest_first_graph):
        balances = calculate_net_balances(largest_first_graph)
        assert min_cash_flow_settle_up(balances, "USD") == greedy_settle_up(balances, "USD")


class TestFriendPreference:
    def test_settles_between_close_friends(self, friends_graph, friendships):
        plan = friend_preference_settle_up(calculate_net_balances(friends_graph), "USD", friendships)

        assert ("user1", "user4", 100) in _triples(plan)
        assert ("user3", "user2", 100) in _triples(plan)
        assert_conserves(friends_graph, plan)

    def test_greedy_does_not_cross_match_same_input(self, friends_graph):
        plan = greedy_settle_up(calculate_net_balances(friends_graph), "USD")
        assert _triples(plan) == [("user1", "user2", 100), ("user3", "user4", 100)]

    def test_reverse_key_lookup(self, friends_graph):
        plan = friend_preference_settle_up(
            calculate_net_balances(friends_graph), "USD", {"user4_user1": 0.9}
        )
        assert _triples(plan)[0] == ("user1", "user4", 100)

    def test_empty_friendships_still_balance(self):
        graph = make_graph(["user1", "user2", "user3"], [("user1", "user2", 100), ("user2", "user3", 50)])
        plan = friend_preference_settle_up(calculate_net_balances(graph), "USD", {})
        assert plan
        assert_conserves(graph, plan)

    def test_debtor_spreads_over_friends_by_strength(self):
        graph = make_graph(
            ["user1", "user2", "user3", "user4"],
            [("user1", "user2", 100), ("user1", "user3", 50), ("user4", "user2", 70), ("user4", "user3", 30)],
        )
        strengths = {"user1_user2": 0.8, "user1_user3": 0.3, "user4_user2": 0.9, "user4_user3": 0.2}

        plan = friend_preference_settle_up(calculate_net_balances(graph), "USD", strengths)

        # user1 (150) целиком к user2 (0.8); user4 добивает остаток user2 (0.9), потом user3
        assert _triples(plan) == [
            ("user1", "user2", 150),
            ("user4", "user2", 20),
            ("user4", "user3", 80),
        ]
        assert_conserves(graph, plan)


def _random_balances_graph(seed, n_users):
    rnd = random.Random(seed)
    users = [f"u{i}" for i in range(n_users)]
    edges = []
    for _ in range(rnd.randint(0, 3 * n_users)):
        a, b = rnd.sample(users, 2)
        edges.append((a, b, Decimal(rnd.randint(1, 999999)) / 1000))
    return make_graph(users, edges)


@pytest.mark.parametrize("algorithm", ALL)
@pytest.mark.parametrize("seed", range(15))
def test_conservation_and_transaction_bound(algorithm, seed):
    graph = _random_balances_graph(seed, n_users=2 + seed % 7)
    friendships = {f"u{i}_u{i + 1}": (i % 10) / 10 for i in range(10)}

    plan = algorithm(calculate_net_balances(graph), "USD", friendships)

    assert_conserves(graph, plan)
    assert len(plan) <= len(graph.users) - 1
    assert all(s.amount > 0 for s in plan)


@pytest.mark.parametrize("algorithm", ALL)
def test_no_debts_no_settlements(algorithm):
    graph = make_graph(["user1", "user2", "user3"], [])
    assert algorithm(calculate_net_balances(graph), "USD", None) == []


class TestRegistry:
    def test_all_three_registered(self):
        assert [a.value for a in ALGORITHMS] == ["minCashFlow", "greedy", "friendPreference"]

    def test_resolve_by_name(self):
        assert resolve_algorithm("friendPreference") is SettleAlgorithm.friend_preference
        assert get_algorithm("greedy") is greedy_settle_up

    @pytest.mark.parametrize("name", ["fastest", "mincashflow", "", None, "pairs"])
    def test_unknown_algorithm(self, name):
        with pytest.raises(UnknownAlgorithmError):
            resolve_algorithm(name)
