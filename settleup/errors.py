# settleup/errors.py
# -----------------------------------------------------------------------------
# ОШИБКИ ДВИЖКА SETTLE-UP
# -----------------------------------------------------------------------------
# Все ошибки — структурные (ошибки входных данных), а не временные сбои:
#   • внутри движка не ретраятся;
#   • частичный результат не возвращается;
#   • наверх пробрасываются как есть, HTTP-слой сам решает, какой код отдать.
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional


class SettlementError(Exception):
    """Базовая ошибка движка взаиморасчётов."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidDebtError(SettlementError):
    """Неположительная сумма, долг самому себе или участник вне графа."""


class UnbalancedGraphError(SettlementError):
    """Сумма net-балансов не сходится к нулю (битый граф на входе или битый план)."""


class MissingExchangeRateError(SettlementError):
    def __init__(self, base: str, quote: str, detail: Optional[str] = None):
        super().__init__(detail or f"no exchange rate path from {base} to {quote}")
        self.base = base
        self.quote = quote


class UnknownAlgorithmError(SettlementError):
    def __init__(self, algorithm: object, allowed: tuple[str, ...] = ()):
        allowed_txt = "|".join(allowed) if allowed else "minCashFlow|greedy|friendPreference"
        super().__init__(f"algorithm must be one of {allowed_txt}, got {algorithm!r}")
        self.algorithm = algorithm
