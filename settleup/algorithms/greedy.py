# settleup/algorithms/greedy.py
# -----------------------------------------------------------------------------
# ЖАДНЫЙ SETTLE-UP: «крупнейший должник -> крупнейший кредитор»
# -----------------------------------------------------------------------------
#   1) делим участников на кредиторов (net > 0) и должников (net < 0, по модулю);
#   2) оба списка — по убыванию суммы (сортировка стабильная: при равных суммах
#      сохраняется порядок участников в графе, никакой случайности);
#   3) идём двумя курсорами, гасим min(долг, кредит), сдвигаем исчерпанный курсор.
# Каждая выплата обнуляет хотя бы одну сторону → выплат не больше n - 1.
# Это эвристика, а не доказуемый минимум числа переводов (та задача NP-трудная).
# -----------------------------------------------------------------------------

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from settleup.models.settlement import Settlement
from settleup.utils.friendship import FriendshipStrengths
from settleup.utils.money import ZERO, is_zero


def split_creditors_debtors(
    net_balance: Mapping[str, Decimal],
) -> Tuple[List[Tuple[str, Decimal]], List[Tuple[str, Decimal]]]:
    """Кредиторы и должники (суммы по модулю), оба по убыванию суммы."""
    creditors = sorted(
        [(uid, bal) for uid, bal in net_balance.items() if bal > ZERO],
        key=lambda x: -x[1],
    )
    debtors = sorted(
        [(uid, -bal) for uid, bal in net_balance.items() if bal < ZERO],
        key=lambda x: -x[1],
    )
    return creditors, debtors


def match_largest_first(
    creditors: List[Tuple[str, Decimal]],
    debtors: List[Tuple[str, Decimal]],
    currency: str,
) -> List[Settlement]:
    settlements: List[Settlement] = []
    i, j = 0, 0
    while i < len(creditors) and j < len(debtors):
        creditor_id, credit_abs = creditors[i]
        debtor_id, debt_abs = debtors[j]

        amount = min(credit_abs, debt_abs)
        if amount > ZERO:
            settlements.append(
                Settlement(payer_id=debtor_id, receiver_id=creditor_id, amount=amount, currency=currency)
            )

        creditors[i] = (creditor_id, credit_abs - amount)
        debtors[j] = (debtor_id, debt_abs - amount)

        if is_zero(creditors[i][1]):
            i += 1
        if is_zero(debtors[j][1]):
            j += 1

    return settlements


def greedy_settle_up(
    net_balance: Mapping[str, Decimal],
    currency: str,
    friendships: Optional[FriendshipStrengths] = None,
) -> List[Settlement]:
    # friendships не используется: сигнатура общая для всех алгоритмов
    creditors, debtors = split_creditors_debtors(net_balance)
    return match_largest_first(creditors, debtors, currency)
