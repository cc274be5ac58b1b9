# settleup/utils/money.py
# -----------------------------------------------------------------------------
# ДЕНЕЖНАЯ АРИФМЕТИКА
# -----------------------------------------------------------------------------
# Политика:
#   • Все суммы — Decimal. float на входе превращаем в Decimal через str(),
#     чтобы не тащить двоичный «хвост» (0.1 + 0.2 и т.п.).
#   • Промежуточные вычисления НЕ округляем.
#   • Алгоритмы работают на точных балансах. Округление до центов — только
#     для готового плана (utils/rounding.py) и сумм после конверсии валют.
#   • Допуск 0.01 — только для проверок «равно нулю», не для арифметики.
# -----------------------------------------------------------------------------

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

MONEY_DECIMALS = 2
TOLERANCE = Decimal("0.01")
ZERO = Decimal("0")


def D(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    if isinstance(x, bool):
        raise TypeError("bool is not a money amount")
    try:
        return Decimal(str(x))
    except InvalidOperation as e:
        raise ValueError(f"not a number: {x!r}") from e


def _q(decimals: int) -> Decimal:
    return Decimal("1") if decimals <= 0 else Decimal("1").scaleb(-decimals)


def quantize(d: Decimal, decimals: int = MONEY_DECIMALS) -> Decimal:
    return D(d).quantize(_q(decimals), rounding=ROUND_HALF_UP)


def is_zero(d: Decimal) -> bool:
    """Меньше цента по модулю: остаток считается погашенным."""
    return abs(d) < TOLERANCE


def within_tolerance(d: Decimal) -> bool:
    """|d| не больше допуска 0.01 (проверка сходимости балансов)."""
    return abs(d) <= TOLERANCE


def to_float(d: Decimal, decimals: int = MONEY_DECIMALS) -> float:
    # для JSON-выдачи; внутри движка float не используется
    return float(quantize(d, decimals))
