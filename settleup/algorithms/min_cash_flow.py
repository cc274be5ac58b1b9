# settleup/algorithms/min_cash_flow.py
# «Minimum cash flow» в этой системе — та же жадная эвристика
# «крупнейший к крупнейшему», что и greedy, а НЕ рекурсивный поиск
# минимального числа переводов из учебника. Поведение сохранено намеренно:
# менять его без решения продукта нельзя (см. DESIGN.md).

from __future__ import annotations

from decimal import Decimal
from typing import List, Mapping, Optional

from settleup.algorithms.greedy import match_largest_first, split_creditors_debtors
from settleup.models.settlement import Settlement
from settleup.utils.friendship import FriendshipStrengths


def min_cash_flow_settle_up(
    net_balance: Mapping[str, Decimal],
    currency: str,
    friendships: Optional[FriendshipStrengths] = None,
) -> List[Settlement]:
    creditors, debtors = split_creditors_debtors(net_balance)
    return match_largest_first(creditors, debtors, currency)
