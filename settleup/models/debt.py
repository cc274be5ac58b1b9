# settleup/models/debt.py
# -----------------------------------------------------------------------------
# МОДЕЛЬ: граф долгов группы
# -----------------------------------------------------------------------------
# Debt       — «from_user ДОЛЖЕН to_user amount в валюте currency».
# DebtGraph  — участники (в порядке подачи) + упорядоченная последовательность долгов.
#
# ПРИМЕЧАНИЯ:
#   - Обе сущности неизменяемые (frozen dataclass). Алгоритмы граф не мутируют,
#     а строят новые структуры (см. dataclasses.replace в cycles.py / currency.py).
#   - Порядок users важен: от него зависит детерминированный порядок балансов,
#     а значит и тай-брейки в сортировках алгоритмов.
#   - Принадлежность участников графу проверяется при сборке, а не в алгоритмах.
# -----------------------------------------------------------------------------

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping, Tuple, Union

from settleup.errors import InvalidDebtError
from settleup.utils.money import D

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def normalize_currency_code(code: Any) -> str:
    cand = str(code or "").upper().strip()
    if not _CURRENCY_RE.match(cand):
        raise InvalidDebtError(f"invalid currency code: {code!r}")
    return cand


@dataclass(frozen=True)
class Debt:
    from_user: str
    to_user: str
    amount: Decimal
    currency: str

    def __post_init__(self):
        try:
            amount = D(self.amount)
        except (TypeError, ValueError) as e:
            raise InvalidDebtError(f"invalid debt amount: {self.amount!r}") from e
        if not amount.is_finite() or amount <= 0:
            raise InvalidDebtError(f"debt amount must be positive, got {self.amount!r}")
        if self.from_user == self.to_user:
            raise InvalidDebtError(f"self-debt is not allowed: {self.from_user!r}")
        # frozen → пишем через object.__setattr__
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "currency", normalize_currency_code(self.currency))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], default_currency: str | None = None) -> "Debt":
        """
        Принимает и «сырой» формат {"from", "to", "amount", "currency"},
        и питоний {"from_user", "to_user", ...}.
        """
        frm = raw.get("from_user", raw.get("from"))
        to = raw.get("to_user", raw.get("to"))
        if frm is None or to is None:
            raise InvalidDebtError(f"debt must have 'from' and 'to': {dict(raw)!r}")
        return cls(
            from_user=str(frm),
            to_user=str(to),
            amount=raw.get("amount"),
            currency=raw.get("currency") or default_currency,
        )


DebtLike = Union[Debt, Mapping[str, Any]]


@dataclass(frozen=True)
class DebtGraph:
    users: Tuple[str, ...] = ()
    debts: Tuple[Debt, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # дедуп с сохранением порядка подачи
        users = tuple(dict.fromkeys(str(u) for u in self.users))
        debts = tuple(self.debts)
        known = set(users)
        for debt in debts:
            for uid in (debt.from_user, debt.to_user):
                if uid not in known:
                    raise InvalidDebtError(f"user {uid!r} is not a member of the graph")
        object.__setattr__(self, "users", users)
        object.__setattr__(self, "debts", debts)

    @classmethod
    def build(
        cls,
        users: Iterable[Any],
        debts: Iterable[DebtLike] = (),
        default_currency: str | None = None,
    ) -> "DebtGraph":
        items = [
            d if isinstance(d, Debt) else Debt.from_dict(d, default_currency=default_currency)
            for d in debts
        ]
        return cls(users=tuple(str(u) for u in users), debts=tuple(items))

    def currencies(self) -> list[str]:
        """Валюты долгов в порядке первого появления."""
        return list(dict.fromkeys(d.currency for d in self.debts))

    def is_multicurrency(self) -> bool:
        return len(self.currencies()) > 1

    def with_debts(self, debts: Iterable[Debt]) -> "DebtGraph":
        return DebtGraph(users=self.users, debts=tuple(debts))
