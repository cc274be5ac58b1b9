# settleup/routers/settlements.py
# -----------------------------------------------------------------------------
# РОУТЕР: Settle-up
# -----------------------------------------------------------------------------
# Тонкая HTTP-обёртка над движком. Всё нужное (граф, курсы, дружба) приходит
# в теле запроса: роутер ничего не хранит и не кэширует.
#
# Ошибки движка:
#   • неизвестный алгоритм      → 422 (как «algorithm must be ...» в групповом роутере)
#   • прочие SettlementError    → 400 (битые входные данные)
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query

from settleup.errors import SettlementError, UnknownAlgorithmError
from settleup.schemas.debt_graph import BalanceOut, DebtGraphIn, DebtGraphOut
from settleup.schemas.settlement import ComparisonOut, SettlementExplanationOut, SettlementOut
from settleup.services.settlement import best_by, calculate_settlements, compare_algorithms, explain_settlements
from settleup.utils.balance import calculate_net_balances
from settleup.utils.cycles import simplify_circular_debts
from settleup.utils.money import to_float

log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/settlements",   # в main.py подключается под /api → итого: /api/settlements
)


def _to_http(e: SettlementError) -> HTTPException:
    log.warning("settle-up request rejected: %s", e.detail)
    code = 422 if isinstance(e, UnknownAlgorithmError) else 400
    return HTTPException(status_code=code, detail=e.detail)


@router.post("/balances", response_model=List[BalanceOut])
def get_balances(payload: DebtGraphIn):
    """Net-балансы по однородному по валюте графу."""
    try:
        balances = calculate_net_balances(payload.to_graph())
    except SettlementError as e:
        raise _to_http(e)
    return [{"user_id": uid, "balance": to_float(bal)} for uid, bal in balances.items()]


@router.post("/simplify", response_model=DebtGraphOut)
def simplify(payload: DebtGraphIn):
    try:
        graph = simplify_circular_debts(payload.to_graph())
    except SettlementError as e:
        raise _to_http(e)
    return DebtGraphOut.from_graph(graph)


@router.post("/calculate", response_model=List[SettlementOut])
def calculate(
    payload: DebtGraphIn,
    algorithm: Optional[str] = Query(
        None,
        description="minCashFlow | greedy | friendPreference (по умолчанию — из настроек)",
    ),
    preferred_currency: Optional[str] = Query(
        None,
        pattern=r"^[A-Za-z]{3}$",
        description="Во что переводить выплаты пар без общей валюты",
    ),
):
    """
    План взаиморасчётов.

    • Один тип валюты — план в ней же (или в preferred_currency, если задана и есть курс).
    • Несколько валют — сводим в working_currency, считаем, а каждую выплату
      переоцениваем в валюту, которой пара реально пользовалась.
    """
    try:
        plan = calculate_settlements(
            payload.to_graph(),
            payload.exchange_rates,
            algorithm,
            payload.friendships,
            working_currency=payload.working_currency,
            preferred_currency=preferred_currency,
        )
    except SettlementError as e:
        raise _to_http(e)
    return [s.to_dict() for s in plan]


@router.post("/compare", response_model=ComparisonOut)
def compare(payload: DebtGraphIn):
    try:
        reports = compare_algorithms(
            payload.to_graph(),
            payload.exchange_rates,
            payload.friendships,
            working_currency=payload.working_currency,
        )
    except SettlementError as e:
        raise _to_http(e)

    algorithms: Dict[str, dict] = {name: r.to_dict() for name, r in reports.items()}
    return {
        "algorithms": algorithms,
        "best_by_transaction_count": best_by(reports, "transaction_count"),
        "best_by_friendship_utilization": best_by(reports, "friendship_utilization"),
    }


@router.post("/explain", response_model=SettlementExplanationOut)
def explain(
    payload: DebtGraphIn,
    algorithm: Optional[str] = Query(
        None,
        description="minCashFlow | greedy | friendPreference (по умолчанию — из настроек)",
    ),
    preferred_currency: Optional[str] = Query(None, pattern=r"^[A-Za-z]{3}$"),
):
    """План + граф/sankey, пошаговый разбор и текстовое объяснение расчёта."""
    try:
        result = explain_settlements(
            payload.to_graph(),
            payload.exchange_rates,
            algorithm,
            payload.friendships,
            working_currency=payload.working_currency,
            preferred_currency=preferred_currency,
        )
    except SettlementError as e:
        raise _to_http(e)
    result["settlements"] = [s.to_dict() for s in result["settlements"]]
    return result
