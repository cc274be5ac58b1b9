# settleup/algorithms/friend_preference.py
# -----------------------------------------------------------------------------
# SETTLE-UP С ПРЕДПОЧТЕНИЕМ ДРУЗЕЙ
# -----------------------------------------------------------------------------
# Разбиение и размеры — как в greedy. Отличие в сведении:
#   • должники обрабатываются по убыванию долга;
#   • для КАЖДОГО должника кредиторы сортируются по силе дружбы именно с ним
#     (по убыванию; при равной силе — порядок по сумме, как в greedy);
#   • должник гасит максимум с ближайшими друзьями, потом с остальными,
#     и только после исчерпания долга переходим к следующему должнику.
# Переводов может получиться больше, чем у greedy, зато деньги чаще ходят
# между людьми, которые и так знакомы.
# Пустая карта дружбы = все силы 0 → план всё равно полный.
# -----------------------------------------------------------------------------

from __future__ import annotations

from decimal import Decimal
from typing import List, Mapping, Optional

from settleup.algorithms.greedy import split_creditors_debtors
from settleup.models.settlement import Settlement
from settleup.utils.friendship import FriendshipStrengths, friendship_strength
from settleup.utils.money import ZERO, is_zero


def friend_preference_settle_up(
    net_balance: Mapping[str, Decimal],
    currency: str,
    friendships: Optional[FriendshipStrengths] = None,
) -> List[Settlement]:
    creditors, debtors = split_creditors_debtors(net_balance)
    remaining = dict(creditors)

    settlements: List[Settlement] = []
    for debtor_id, debt_abs in debtors:
        ranked = sorted(
            (uid for uid, _ in creditors),
            key=lambda uid: -friendship_strength(friendships, debtor_id, uid),
        )
        for creditor_id in ranked:
            if is_zero(debt_abs):
                break
            credit_abs = remaining[creditor_id]
            if is_zero(credit_abs):
                continue

            amount = min(debt_abs, credit_abs)
            if amount <= ZERO:
                continue
            settlements.append(
                Settlement(payer_id=debtor_id, receiver_id=creditor_id, amount=amount, currency=currency)
            )
            debt_abs -= amount
            remaining[creditor_id] = credit_abs - amount

    return settlements
