# settleup/schemas/debt_graph.py
# -----------------------------------------------------------------------------
# СХЕМЫ Pydantic: вход движка (граф долгов, курсы, дружба)
# -----------------------------------------------------------------------------
# Граница валидации: здесь «сырые» JSON-карты превращаются в типизированные
# структуры; внутрь движка нетипизированные dict'ы не уходят.
# -----------------------------------------------------------------------------

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from settleup.models.debt import Debt, DebtGraph
from settleup.utils.currency import ExchangeRates

_CCY_PATTERN = r"^[A-Za-z]{3}$"


class DebtIn(BaseModel):
    # "from" — зарезервированное слово, поэтому поле через alias
    model_config = ConfigDict(populate_by_name=True)

    from_user: str = Field(..., alias="from", description="Кто должен")
    to_user: str = Field(..., alias="to", description="Кому должен")
    amount: Decimal = Field(..., gt=0, description="Сумма долга (> 0)")
    currency: str = Field(..., pattern=_CCY_PATTERN, description="Код валюты ISO-4217, напр. 'USD'")

    @field_validator("currency")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def _not_self(self):
        if self.from_user == self.to_user:
            raise ValueError("self-debt is not allowed")
        return self

    def to_debt(self) -> Debt:
        return Debt(from_user=self.from_user, to_user=self.to_user, amount=self.amount, currency=self.currency)


class DebtGraphIn(BaseModel):
    users: List[str] = Field(default_factory=list, description="Участники группы")
    debts: List[DebtIn] = Field(default_factory=list, description="Парные долги")
    exchange_rates: Dict[str, Decimal] = Field(
        default_factory=dict,
        description="Курсы 'BASE_QUOTE' -> rate, amount_in_quote = amount_in_base * rate",
    )
    friendships: Dict[str, float] = Field(
        default_factory=dict,
        description="Сила дружбы 'A_B' -> [0, 1]; нет записи — 0",
    )
    working_currency: Optional[str] = Field(
        None,
        pattern=_CCY_PATTERN,
        description="Рабочая валюта для мультивалютного графа (по умолчанию из настроек)",
    )

    @field_validator("exchange_rates")
    @classmethod
    def _rates_valid(cls, v: Dict[str, Decimal]) -> Dict[str, Decimal]:
        # та же проверка, что и в движке: ключ вида EUR_USD, курс > 0
        ExchangeRates(v)
        return {k.upper(): rate for k, rate in v.items()}

    @field_validator("friendships")
    @classmethod
    def _strength_range(cls, v: Dict[str, float]) -> Dict[str, float]:
        for key, strength in v.items():
            if not 0 <= strength <= 1:
                raise ValueError(f"friendship strength for {key} must be within [0, 1]")
        return v

    def to_graph(self) -> DebtGraph:
        return DebtGraph(users=tuple(self.users), debts=tuple(d.to_debt() for d in self.debts))


class DebtGraphOut(BaseModel):
    users: List[str]
    debts: List[Dict[str, Any]]

    @classmethod
    def from_graph(cls, graph: DebtGraph) -> "DebtGraphOut":
        return cls(
            users=list(graph.users),
            debts=[
                {"from": d.from_user, "to": d.to_user, "amount": float(d.amount), "currency": d.currency}
                for d in graph.debts
            ],
        )


class BalanceOut(BaseModel):
    user_id: str
    balance: float
