# settleup/services/settlement.py
# -----------------------------------------------------------------------------
# СЕРВИС SETTLE-UP: единая точка входа в движок
# -----------------------------------------------------------------------------
# Поток данных:
#   DebtGraph
#     → (если валют > 1) нормализация в рабочую валюту
#     → схлопывание циклов (опционально)
#     → net-балансы → проверка сходимости
#     → выбранный алгоритм на точных балансах → округление плана до центов
#     → проверка плана на сохранение ТОЧНЫХ балансов
#     → (мультивалютность) переоценка выплат в «родную» валюту пары
#
# Движок чистый: без I/O, без кэшей, без глобального изменяемого состояния.
# Либо возвращаем полный проверенный план, либо бросаем ошибку. Частичных планов нет.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from settleup import settings
from settleup.algorithms.registry import ALGORITHMS, SettleAlgorithm, resolve_algorithm
from settleup.models.debt import DebtGraph
from settleup.models.settlement import Settlement
from settleup.services.visualization import (
    generate_settlement_breakdown,
    generate_settlement_explanation,
    generate_settlement_visualization,
    reduction_percentage,
)
from settleup.utils.balance import (
    calculate_net_balances,
    ensure_balanced,
    ensure_plan_settles,
)
from settleup.utils.currency import (
    ExchangeRates,
    NormalizedGraph,
    as_exchange_rates,
    convert_settlements,
    normalize,
    redenominate,
)
from settleup.utils.cycles import simplify_circular_debts
from settleup.utils.friendship import FriendshipStrengths, friendship_strength
from settleup.utils.money import ZERO, to_float
from settleup.utils.rounding import round_plan_to_cents

log = logging.getLogger(__name__)


# =========================
# ПОДГОТОВКА ГРАФА
# =========================

@dataclass(frozen=True)
class PreparedGraph:
    graph: DebtGraph                       # однородный по валюте
    currency: Optional[str]                # None — долгов нет
    normalized: Optional[NormalizedGraph]  # только для мультивалютного входа


def prepare_graph(
    graph: DebtGraph,
    rates: ExchangeRates,
    *,
    working_currency: Optional[str] = None,
    preferred_currency: Optional[str] = None,
    simplify: Optional[bool] = None,
) -> PreparedGraph:
    if simplify is None:
        simplify = settings.SIMPLIFY_CYCLES

    currencies = graph.currencies()
    if not currencies:
        return PreparedGraph(graph=graph, currency=None, normalized=None)

    normalized = None
    if graph.is_multicurrency():
        target = working_currency or preferred_currency or settings.WORKING_CURRENCY
        normalized = normalize(graph, rates, target)
        graph = normalized.graph
        currency = normalized.working_currency
    else:
        currency = currencies[0]

    if simplify:
        graph = simplify_circular_debts(graph)
    return PreparedGraph(graph=graph, currency=currency, normalized=normalized)


# =========================
# ЗАПУСК АЛГОРИТМА
# =========================

def settle_balances(
    net_balance: Mapping[str, Decimal],
    currency: str,
    algorithm=SettleAlgorithm.min_cash_flow,
    friendships: Optional[FriendshipStrengths] = None,
) -> List[Settlement]:
    """
    План по уже посчитанным net-балансам одной валюты.
    Несходящиеся балансы отклоняются ДО запуска алгоритма.
    Алгоритм работает на точных суммах; в центы переводится только готовый
    план, и проверяется он против тех же точных балансов.
    """
    algo = resolve_algorithm(algorithm)
    ensure_balanced(net_balance)
    plan = ALGORITHMS[algo](net_balance, currency, friendships)
    plan = round_plan_to_cents(plan)
    ensure_plan_settles(net_balance, plan)
    return plan


def calculate_settlements(
    graph: DebtGraph,
    exchange_rates=None,
    algorithm=None,
    friendships: Optional[FriendshipStrengths] = None,
    *,
    working_currency: Optional[str] = None,
    preferred_currency: Optional[str] = None,
    simplify: Optional[bool] = None,
) -> List[Settlement]:
    algo = resolve_algorithm(algorithm or settings.DEFAULT_ALGORITHM)
    rates = as_exchange_rates(exchange_rates)

    prepared = prepare_graph(
        graph,
        rates,
        working_currency=working_currency,
        preferred_currency=preferred_currency,
        simplify=simplify,
    )
    if prepared.currency is None:
        return []

    balances = calculate_net_balances(prepared.graph)
    plan = settle_balances(balances, prepared.currency, algo, friendships)

    if prepared.normalized is not None:
        plan = redenominate(plan, prepared.normalized, rates, preferred_currency)
    elif preferred_currency and preferred_currency.upper() != prepared.currency:
        plan = convert_settlements(plan, rates, preferred_currency)

    log.info(
        "settle-up plan: algorithm=%s currency=%s debts=%d settlements=%d",
        algo.value,
        prepared.currency,
        len(graph.debts),
        len(plan),
    )
    return plan


# =========================
# СРАВНЕНИЕ АЛГОРИТМОВ
# =========================

@dataclass(frozen=True)
class AlgorithmMetrics:
    transaction_count: int
    total_amount: Decimal
    average_amount: Decimal
    friendship_utilization: float
    original_transaction_count: int = 0
    reduction_percentage: int = 0

    def to_dict(self) -> dict:
        return {
            "transaction_count": self.transaction_count,
            "total_amount": to_float(self.total_amount),
            "average_amount": to_float(self.average_amount),
            "friendship_utilization": round(self.friendship_utilization, 4),
            "original_transaction_count": self.original_transaction_count,
            "reduction_percentage": self.reduction_percentage,
        }


@dataclass(frozen=True)
class AlgorithmReport:
    algorithm: SettleAlgorithm
    currency: Optional[str]
    settlements: List[Settlement] = field(default_factory=list)
    metrics: Optional[AlgorithmMetrics] = None
    visualization: dict = field(default_factory=dict)   # network_graph, sankey_diagram, summary
    breakdown: dict = field(default_factory=dict)
    explanation: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "algorithm": self.algorithm.value,
            "currency": self.currency,
            "settlements": [s.to_dict() for s in self.settlements],
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "visualization": self.visualization,
            "breakdown": self.breakdown,
            "explanation": self.explanation,
        }


def friendship_utilization(
    settlements: List[Settlement],
    friendships: Optional[FriendshipStrengths],
) -> float:
    """Средняя сила дружбы между payer и receiver по всем выплатам плана."""
    if not settlements or not friendships:
        return 0.0
    total = sum(friendship_strength(friendships, s.payer_id, s.receiver_id) for s in settlements)
    return total / len(settlements)


def build_metrics(
    settlements: List[Settlement],
    friendships: Optional[FriendshipStrengths],
    original_transaction_count: int = 0,
) -> AlgorithmMetrics:
    total = sum((s.amount for s in settlements), ZERO)
    count = len(settlements)
    return AlgorithmMetrics(
        transaction_count=count,
        total_amount=total,
        average_amount=(total / count) if count else ZERO,
        friendship_utilization=friendship_utilization(settlements, friendships),
        original_transaction_count=original_transaction_count,
        reduction_percentage=reduction_percentage(original_transaction_count, count),
    )


def compare_algorithms(
    graph: DebtGraph,
    exchange_rates=None,
    friendships: Optional[FriendshipStrengths] = None,
    *,
    working_currency: Optional[str] = None,
    simplify: Optional[bool] = None,
) -> Dict[str, AlgorithmReport]:
    """
    Прогоняет все алгоритмы по ОДНОМУ и тому же нормализованному графу.
    Выплаты остаются в рабочей валюте, чтобы суммы были сопоставимы.
    Сокращение переводов считается от числа исходных долгов (до схлопывания циклов).
    """
    rates = as_exchange_rates(exchange_rates)
    prepared = prepare_graph(graph, rates, working_currency=working_currency, simplify=simplify)

    balances = calculate_net_balances(prepared.graph) if prepared.currency else None

    reports: Dict[str, AlgorithmReport] = {}
    for algo in SettleAlgorithm:
        plan = settle_balances(balances, prepared.currency, algo, friendships) if prepared.currency else []
        reports[algo.value] = AlgorithmReport(
            algorithm=algo,
            currency=prepared.currency,
            settlements=plan,
            metrics=build_metrics(plan, friendships, len(graph.debts)),
            visualization=generate_settlement_visualization(graph, plan),
            breakdown=generate_settlement_breakdown(graph, plan, balances),
            explanation=generate_settlement_explanation(graph, plan, algo, balances),
        )

    log.info(
        "algorithm comparison: %s",
        {name: r.metrics.transaction_count for name, r in reports.items()},
    )
    return reports


def explain_settlements(
    graph: DebtGraph,
    exchange_rates=None,
    algorithm=None,
    friendships: Optional[FriendshipStrengths] = None,
    *,
    working_currency: Optional[str] = None,
    preferred_currency: Optional[str] = None,
) -> dict:
    """
    План + данные для экрана: визуализация, пошаговый разбор, объяснение.
    Разбор строится по балансам в рабочей валюте, выплаты — как их вернул calculate_settlements.
    """
    algo = resolve_algorithm(algorithm or settings.DEFAULT_ALGORITHM)
    plan = calculate_settlements(
        graph,
        exchange_rates,
        algo,
        friendships,
        working_currency=working_currency,
        preferred_currency=preferred_currency,
    )

    prepared = prepare_graph(
        graph,
        as_exchange_rates(exchange_rates),
        working_currency=working_currency,
        preferred_currency=preferred_currency,
        simplify=False,
    )
    balances = calculate_net_balances(prepared.graph) if prepared.currency else None

    return {
        "algorithm": algo.value,
        "currency": prepared.currency,
        "settlements": plan,
        "visualization": generate_settlement_visualization(graph, plan),
        "breakdown": generate_settlement_breakdown(graph, plan, balances),
        "explanation": generate_settlement_explanation(graph, plan, algo, balances),
    }


_LOWER_IS_BETTER = {"transaction_count", "total_amount"}
_HIGHER_IS_BETTER = {"friendship_utilization", "reduction_percentage"}


def best_by(reports: Mapping[str, AlgorithmReport], metric: str = "transaction_count") -> Optional[str]:
    """
    Имя лучшего алгоритма по метрике. transaction_count / total_amount — меньше лучше,
    friendship_utilization / reduction_percentage — больше лучше.
    При равенстве — первый в порядке отчёта.
    """
    if not reports:
        return None
    if metric not in _LOWER_IS_BETTER and metric not in _HIGHER_IS_BETTER:
        raise ValueError(f"unknown metric: {metric!r}")

    def score(item: Tuple[str, AlgorithmReport]):
        value = getattr(item[1].metrics, metric)
        return value if metric in _LOWER_IS_BETTER else -value

    return min(reports.items(), key=score)[0]
