# settleup/utils/balance.py
# -----------------------------------------------------------------------------
# NET-БАЛАНСЫ
# -----------------------------------------------------------------------------
# Семантика net:
#   net > 0 — пользователю ДОЛЖНЫ (кредитор); net < 0 — он ДОЛЖЕН (должник).
# Долг from -> to на X: net[from] -= X, net[to] += X.
# Выплата payer -> receiver на X: net[payer] += X, net[receiver] -= X.
#
# Политика:
#   • Балансы считаются только по однородному по валюте графу.
#     Мультивалютный граф сначала сводится в рабочую валюту (см. currency.py).
#   • Сумма балансов обязана сходиться к нулю в пределах 0.01 —
#     иначе граф битый, и алгоритм даже не запускается.
# -----------------------------------------------------------------------------

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Mapping

from settleup.errors import InvalidDebtError, UnbalancedGraphError
from settleup.models.debt import DebtGraph
from settleup.models.settlement import Settlement
from settleup.utils.money import ZERO, within_tolerance


def calculate_net_balances(graph: DebtGraph) -> Dict[str, Decimal]:
    """
    Один баланс на каждого участника графа (в том числе нулевой),
    в порядке graph.users.
    """
    currencies = graph.currencies()
    if len(currencies) > 1:
        raise InvalidDebtError(
            f"mixed currencies {', '.join(currencies)}: normalize the graph before computing balances"
        )

    net = {uid: ZERO for uid in graph.users}
    for debt in graph.debts:
        net[debt.from_user] -= debt.amount
        net[debt.to_user] += debt.amount
    return net


def ensure_balanced(balances: Mapping[str, Decimal]) -> None:
    total = sum(balances.values(), ZERO)
    if not within_tolerance(total):
        raise UnbalancedGraphError(f"net balances sum to {total}, expected 0")


def apply_settlements(
    balances: Mapping[str, Decimal],
    settlements: Iterable[Settlement],
) -> Dict[str, Decimal]:
    """Остатки после применения плана. Для корректного плана все ≈ 0."""
    residual = dict(balances)
    for s in settlements:
        residual[s.payer_id] = residual.get(s.payer_id, ZERO) + s.amount
        residual[s.receiver_id] = residual.get(s.receiver_id, ZERO) - s.amount
    return residual


def is_settled(balances: Mapping[str, Decimal]) -> bool:
    return all(within_tolerance(b) for b in balances.values())


def ensure_plan_settles(
    balances: Mapping[str, Decimal],
    settlements: Iterable[Settlement],
) -> None:
    residual = apply_settlements(balances, settlements)
    leftovers = {uid: bal for uid, bal in residual.items() if not within_tolerance(bal)}
    if leftovers:
        raise UnbalancedGraphError(f"settlement plan leaves unsettled balances: {leftovers}")
