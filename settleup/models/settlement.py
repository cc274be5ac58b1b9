# settleup/models/settlement.py
# Одна предложенная выплата плана settle-up: payer -> receiver на amount.
# Если сумма была переведена в другую валюту (redenominate), рядом хранится
# исходная сумма, исходная валюта и курс — чтобы конверсию можно было проверить.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from settleup.utils.money import to_float


@dataclass(frozen=True)
class Settlement:
    payer_id: str
    receiver_id: str
    amount: Decimal
    currency: str
    original_amount: Optional[Decimal] = None
    original_currency: Optional[str] = None
    exchange_rate: Optional[Decimal] = None

    @property
    def is_converted(self) -> bool:
        return self.original_currency is not None

    def to_dict(self) -> dict:
        item = {
            "payer_id": self.payer_id,
            "receiver_id": self.receiver_id,
            "amount": to_float(self.amount),
            "currency": self.currency,
        }
        if self.is_converted:
            item["original_amount"] = to_float(self.original_amount)
            item["original_currency"] = self.original_currency
            item["exchange_rate"] = float(self.exchange_rate)
        return item
