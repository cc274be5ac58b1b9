# settleup/services/visualization.py
# -----------------------------------------------------------------------------
# ДАННЫЕ ДЛЯ ФРОНТА: графы выплат, разбор расчёта, текстовое объяснение
# -----------------------------------------------------------------------------
#   • generate_network_graph        — узлы (сальдо по плану) и связи payer -> receiver
#   • generate_sankey_diagram       — то же для sankey: узлы без сальдо
#   • generate_settlement_breakdown — шаги расчёта и статистика сокращения переводов
#   • generate_settlement_explanation — человекочитаемое описание по алгоритму
#   • generate_settlement_visualization — всё для экрана плана + сводка
# Несколько выплат одной пары в одной валюте склеиваются в одну связь.
# Суммы в выдаче — float до 2 знаков (для JSON).
# -----------------------------------------------------------------------------

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from settleup.algorithms.greedy import split_creditors_debtors
from settleup.algorithms.registry import SettleAlgorithm
from settleup.models.debt import DebtGraph
from settleup.models.settlement import Settlement
from settleup.utils.balance import calculate_net_balances
from settleup.utils.money import ZERO, to_float


def _merged_links(settlements: Iterable[Settlement]) -> List[dict]:
    links: Dict[Tuple[str, str, str], Decimal] = {}
    for s in settlements:
        key = (s.payer_id, s.receiver_id, s.currency)
        links[key] = links.get(key, ZERO) + s.amount
    return [
        {"source": src, "target": dst, "value": to_float(value), "currency": ccy}
        for (src, dst, ccy), value in links.items()
    ]


def generate_network_graph(settlements: Iterable[Settlement]) -> dict:
    """
    {"nodes": [{"id", "balance"}], "links": [{"source", "target", "value", "currency"}]}
    balance узла = получено - отдано по плану (по всем валютам вместе, для отрисовки).
    """
    settlements = list(settlements)
    balances: Dict[str, Decimal] = {}
    for s in settlements:
        balances[s.payer_id] = balances.get(s.payer_id, ZERO) - s.amount
        balances[s.receiver_id] = balances.get(s.receiver_id, ZERO) + s.amount

    return {
        "nodes": [{"id": uid, "balance": to_float(bal)} for uid, bal in balances.items()],
        "links": _merged_links(settlements),
    }


def generate_sankey_diagram(settlements: Iterable[Settlement]) -> dict:
    settlements = list(settlements)
    user_ids: Dict[str, None] = {}
    for s in settlements:
        user_ids.setdefault(s.payer_id)
        user_ids.setdefault(s.receiver_id)
    # имён у движка нет, подпись узла = id
    return {
        "nodes": [{"id": uid, "name": uid} for uid in user_ids],
        "links": _merged_links(settlements),
    }


def reduction_percentage(original_count: int, optimized_count: int) -> int:
    """На сколько процентов план короче исходного списка долгов (может быть < 0)."""
    if original_count <= 0:
        return 0
    pct = Decimal(100) * (original_count - optimized_count) / original_count
    return int(pct.to_integral_value(rounding=ROUND_HALF_UP))


def _debt_dict(d) -> dict:
    return {"from": d.from_user, "to": d.to_user, "amount": to_float(d.amount), "currency": d.currency}


def generate_settlement_breakdown(
    graph: DebtGraph,
    settlements: List[Settlement],
    balances: Optional[Mapping[str, Decimal]] = None,
) -> dict:
    """
    Пошаговый разбор расчёта.

    balances — net-балансы, по которым считался план. Для мультивалютного графа
    их нужно передать (в рабочей валюте): сырые долги в разных валютах не складываются.
    """
    if balances is None:
        balances = calculate_net_balances(graph)

    creditors, debtors = split_creditors_debtors(balances)
    input_debts = [_debt_dict(d) for d in graph.debts]
    user_balances = {uid: to_float(bal) for uid, bal in balances.items()}
    final_settlements = [s.to_dict() for s in settlements]

    calculation_steps = [
        {
            "step": 1,
            "action": "Input Collection",
            "description": "Extract original debts",
            "data": input_debts,
        },
        {
            "step": 2,
            "action": "Balance Calculation",
            "description": "Calculate net balance for each user",
            "data": dict(user_balances),
        },
        {
            "step": 3,
            "action": "User Classification",
            "description": "Separate users into creditors (positive balance) and debtors (negative balance)",
            "data": {
                "creditors": [{"id": uid, "amount": to_float(a)} for uid, a in creditors],
                "debtors": [{"id": uid, "amount": to_float(a)} for uid, a in debtors],
            },
        },
        {
            "step": 4,
            "action": "Settlement Optimization",
            "description": "Apply optimization algorithm to generate settlement transactions",
            "data": final_settlements,
        },
    ]

    return {
        "input_debts": input_debts,
        "user_balances": user_balances,
        "calculation_steps": calculation_steps,
        "final_settlements": final_settlements,
        "stats": {
            "original_transaction_count": len(graph.debts),
            "optimized_transaction_count": len(settlements),
            "reduction_percentage": reduction_percentage(len(graph.debts), len(settlements)),
        },
    }


_ALGORITHM_EXPLANATIONS = {
    SettleAlgorithm.greedy: (
        "The Greedy algorithm first calculates the net balance for each user. "
        "It then sorts creditors and debtors by amount and matches the largest debtor "
        "with the largest creditor until everyone is settled."
    ),
    SettleAlgorithm.min_cash_flow: (
        "The Minimum Cash Flow algorithm calculates the net balance for each user, "
        "then repeatedly takes the user with the maximum debt and the user with the maximum credit "
        "and settles as much as possible between them until all debts are settled."
    ),
    SettleAlgorithm.friend_preference: (
        "The Friend Preference algorithm calculates net balances as usual, then lets each debtor "
        "pay the creditors they have the strongest friendship with first."
    ),
}


def generate_settlement_explanation(
    graph: DebtGraph,
    settlements: List[Settlement],
    algorithm,
    balances: Optional[Mapping[str, Decimal]] = None,
) -> dict:
    algo = SettleAlgorithm(algorithm)
    breakdown = generate_settlement_breakdown(graph, settlements, balances)
    stats = breakdown["stats"]
    classified = breakdown["calculation_steps"][2]["data"]

    steps = [
        f"The calculation started with {stats['original_transaction_count']} original debts "
        f"between {len(breakdown['user_balances'])} users.",
        f"After calculating net balances, {len(classified['creditors'])} users are owed money "
        f"and {len(classified['debtors'])} users owe money.",
        f"The {algo.value} algorithm reduced the number of transactions from "
        f"{stats['original_transaction_count']} to {stats['optimized_transaction_count']} "
        f"({stats['reduction_percentage']}% reduction).",
    ]

    return {
        "summary": (
            f"Using the {algo.value} algorithm, {stats['original_transaction_count']} original debts "
            f"were settled with {stats['optimized_transaction_count']} payments, "
            f"reducing the number of transactions by {stats['reduction_percentage']}%."
        ),
        "algorithm_explanation": _ALGORITHM_EXPLANATIONS[algo],
        "step_by_step_explanation": steps,
        "transaction_summary": [
            f"{s.payer_id} pays {s.amount:.2f} {s.currency} to {s.receiver_id}" for s in settlements
        ],
    }


def generate_settlement_visualization(graph: DebtGraph, settlements: List[Settlement]) -> dict:
    """
    Сетевой граф + sankey + сводка.
    reduction_rate — доля (0..1, может быть < 0), а не проценты, как в breakdown.
    """
    users: Dict[str, None] = {}
    total = ZERO
    for s in settlements:
        users.setdefault(s.payer_id)
        users.setdefault(s.receiver_id)
        total += s.amount

    original = len(graph.debts)
    return {
        "network_graph": generate_network_graph(settlements),
        "sankey_diagram": generate_sankey_diagram(settlements),
        "summary": {
            "total_amount": to_float(total),
            "transaction_count": len(settlements),
            "user_count": len(users),
            "reduction_rate": round(1 - len(settlements) / original, 4) if original else 0.0,
        },
    }
