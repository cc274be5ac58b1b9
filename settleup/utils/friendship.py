# settleup/utils/friendship.py
# Сила дружбы между участниками: карта "A_B" -> [0, 1].
# Пара неупорядоченная: при поиске пробуем оба порядка ключа. Нет записи — сила 0.

from __future__ import annotations

from typing import Mapping, Optional

FriendshipStrengths = Mapping[str, float]


def friendship_strength(friendships: Optional[FriendshipStrengths], a: str, b: str) -> float:
    if not friendships:
        return 0.0
    value = friendships.get(f"{a}_{b}")
    if value is None:
        value = friendships.get(f"{b}_{a}")
    return float(value) if value else 0.0
