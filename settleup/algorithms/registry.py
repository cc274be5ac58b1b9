# settleup/algorithms/registry.py
# Реестр алгоритмов settle-up: имя -> функция.
# Допустимые имена: minCashFlow | greedy | friendPreference; остальное — UnknownAlgorithmError.

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

from settleup.algorithms.friend_preference import friend_preference_settle_up
from settleup.algorithms.greedy import greedy_settle_up
from settleup.algorithms.min_cash_flow import min_cash_flow_settle_up
from settleup.errors import UnknownAlgorithmError
from settleup.models.settlement import Settlement
from settleup.utils.friendship import FriendshipStrengths

SettleFn = Callable[[Mapping[str, Decimal], str, Optional[FriendshipStrengths]], List[Settlement]]


class SettleAlgorithm(str, Enum):
    min_cash_flow = "minCashFlow"
    greedy = "greedy"
    friend_preference = "friendPreference"


ALGORITHMS: Dict[SettleAlgorithm, SettleFn] = {
    SettleAlgorithm.min_cash_flow: min_cash_flow_settle_up,
    SettleAlgorithm.greedy: greedy_settle_up,
    SettleAlgorithm.friend_preference: friend_preference_settle_up,
}


def resolve_algorithm(name) -> SettleAlgorithm:
    if isinstance(name, SettleAlgorithm):
        return name
    # имена чувствительны к регистру: "mincashflow" — ошибка клиента
    try:
        return SettleAlgorithm(str(name).strip())
    except ValueError:
        raise UnknownAlgorithmError(name, tuple(a.value for a in SettleAlgorithm)) from None


def get_algorithm(name) -> SettleFn:
    return ALGORITHMS[resolve_algorithm(name)]
