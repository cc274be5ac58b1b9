from decimal import Decimal

import pytest

from conftest import make_graph
from settleup.models.settlement import Settlement
from settleup.services.visualization import (
    generate_network_graph,
    generate_sankey_diagram,
    generate_settlement_breakdown,
    generate_settlement_explanation,
    generate_settlement_visualization,
    reduction_percentage,
)


def test_network_graph_nodes_and_links():
    result = generate_network_graph([
        Settlement("user1", "user2", Decimal("100"), "USD"),
        Settlement("user3", "user2", Decimal("50"), "USD"),
        Settlement("user1", "user4", Decimal("75"), "USD"),
    ])

    assert sorted(n["id"] for n in result["nodes"]) == ["user1", "user2", "user3", "user4"]
    balances = {n["id"]: n["balance"] for n in result["nodes"]}
    assert balances["user1"] == -175.0
    assert balances["user2"] == 150.0
    assert len(result["links"]) == 3


def test_network_graph_empty():
    assert generate_network_graph([]) == {"nodes": [], "links": []}


def test_parallel_settlements_are_merged():
    result = generate_network_graph([
        Settlement("user1", "user2", Decimal("50"), "USD"),
        Settlement("user1", "user2", Decimal("30"), "USD"),
        Settlement("user1", "user2", Decimal("10"), "EUR"),
    ])
    assert result["links"] == [
        {"source": "user1", "target": "user2", "value": 80.0, "currency": "USD"},
        {"source": "user1", "target": "user2", "value": 10.0, "currency": "EUR"},
    ]


def test_sankey_nodes_and_links():
    result = generate_sankey_diagram([
        Settlement("user1", "user2", Decimal("100"), "USD"),
        Settlement("user3", "user4", Decimal("50"), "USD"),
    ])
    assert [n["id"] for n in result["nodes"]] == ["user1", "user2", "user3", "user4"]
    assert result["nodes"][0]["name"] == "user1"
    assert {(l["source"], l["target"], l["value"]) for l in result["links"]} == {
        ("user1", "user2", 100.0),
        ("user3", "user4", 50.0),
    }


def test_settlement_breakdown():
    graph = make_graph(
        ["user1", "user2", "user3"],
        [("user1", "user2", 50), ("user1", "user3", 30), ("user2", "user3", 20)],
    )
    plan = [
        Settlement("user1", "user3", Decimal("50"), "USD"),
        Settlement("user1", "user2", Decimal("30"), "USD"),
    ]

    result = generate_settlement_breakdown(graph, plan)

    assert result["input_debts"][0] == {"from": "user1", "to": "user2", "amount": 50.0, "currency": "USD"}
    assert result["user_balances"] == {"user1": -80.0, "user2": 30.0, "user3": 50.0}
    assert [step["step"] for step in result["calculation_steps"]] == [1, 2, 3, 4]
    assert result["calculation_steps"][2]["data"]["creditors"] == [
        {"id": "user3", "amount": 50.0},
        {"id": "user2", "amount": 30.0},
    ]
    assert result["stats"] == {
        "original_transaction_count": 3,
        "optimized_transaction_count": 2,
        "reduction_percentage": 33,
    }


def test_breakdown_of_multicurrency_graph_uses_given_balances(eur_usd_graph):
    balances = {"user1": Decimal("-165"), "user2": Decimal("-35"), "user3": Decimal("200")}
    result = generate_settlement_breakdown(eur_usd_graph, [], balances)
    assert result["user_balances"]["user3"] == 200.0
    assert result["stats"]["reduction_percentage"] == 100


@pytest.mark.parametrize(
    "original, optimized, expected",
    [(0, 0, 0), (3, 2, 33), (2, 1, 50), (3, 3, 0), (2, 3, -50)],
)
def test_reduction_percentage(original, optimized, expected):
    assert reduction_percentage(original, optimized) == expected


class TestExplanation:
    def test_greedy_explanation(self):
        graph = make_graph(["user1", "user2", "user3"], [("user1", "user2", 50), ("user1", "user3", 30)])
        plan = [
            Settlement("user1", "user2", Decimal("50"), "USD"),
            Settlement("user1", "user3", Decimal("30"), "USD"),
        ]

        result = generate_settlement_explanation(graph, plan, "greedy")

        assert "Greedy" in result["algorithm_explanation"]
        assert len(result["step_by_step_explanation"]) == 3
        assert "2 users are owed money and 1 users owe money" in result["step_by_step_explanation"][1]
        assert result["transaction_summary"] == [
            "user1 pays 50.00 USD to user2",
            "user1 pays 30.00 USD to user3",
        ]
        assert "0%" in result["summary"]

    def test_each_algorithm_is_explained_differently(self):
        graph = make_graph(["user1", "user2"], [("user1", "user2", 100)])
        plan = [Settlement("user1", "user2", Decimal("100"), "USD")]

        texts = {
            name: generate_settlement_explanation(graph, plan, name)["algorithm_explanation"]
            for name in ("greedy", "minCashFlow", "friendPreference")
        }

        assert len(set(texts.values())) == 3
        assert "Minimum Cash Flow" in texts["minCashFlow"]
        assert "Friend Preference" in texts["friendPreference"]

    def test_unknown_algorithm(self):
        graph = make_graph(["user1", "user2"], [("user1", "user2", 100)])
        with pytest.raises(ValueError):
            generate_settlement_explanation(graph, [], "pairs")


def test_settlement_visualization_summary():
    graph = make_graph(["user1", "user2", "user3"], [("user1", "user2", 50), ("user1", "user3", 75)])
    plan = [
        Settlement("user1", "user2", Decimal("50"), "USD"),
        Settlement("user1", "user3", Decimal("75"), "USD"),
    ]

    result = generate_settlement_visualization(graph, plan)

    assert set(result) == {"network_graph", "sankey_diagram", "summary"}
    assert result["summary"] == {
        "total_amount": 125.0,
        "transaction_count": 2,
        "user_count": 3,
        "reduction_rate": 0.0,
    }
    assert len(result["network_graph"]["links"]) == 2
