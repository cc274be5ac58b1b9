# settleup/utils/currency.py
# -----------------------------------------------------------------------------
# МУЛЬТИВАЛЮТНОСТЬ: сведение графа в рабочую валюту и обратная переоценка
# -----------------------------------------------------------------------------
# Политика:
#   • Курсы приходят на вход готовыми (здесь их никто не скачивает).
#     Ключ "BASE_QUOTE": amount_in_quote = amount_in_base * rate.
#   • Поиск курса: прямая пара → обратная (1 / rate) → одна пересадка через
#     промежуточную валюту. Нет пути — MissingExchangeRateError, никаких
#     «тихих» 1.0 по умолчанию.
#   • При нормализации запоминаем provenance: какие валюты реально ходили
#     между КАЖДОЙ упорядоченной парой (from, to). По нему потом выбираем,
#     в какой валюте удобнее проводить конкретную выплату.
#   • Конверсия при нормализации не округляется; округляем только итоговые
#     суммы выплат после переоценки.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from settleup.errors import MissingExchangeRateError
from settleup.models.debt import Debt, DebtGraph, normalize_currency_code
from settleup.models.settlement import Settlement
from settleup.utils.money import D, quantize

log = logging.getLogger(__name__)

ONE = Decimal("1")


def _split_pair(key: str) -> Tuple[str, str]:
    parts = str(key).upper().strip().split("_")
    if len(parts) != 2 or not all(len(p) == 3 and p.isalpha() for p in parts):
        raise ValueError(f"exchange rate key must look like 'EUR_USD', got {key!r}")
    return parts[0], parts[1]


class ExchangeRates:
    """Таблица курсов с проверкой на входе и поиском пути конверсии."""

    def __init__(self, table: Optional[Mapping[str, object]] = None):
        self._rates: Dict[Tuple[str, str], Decimal] = {}
        for key, value in (table or {}).items():
            pair = _split_pair(key)
            rate = D(value)
            if not rate.is_finite() or rate <= 0:
                raise ValueError(f"exchange rate {key} must be positive, got {value!r}")
            self._rates[pair] = rate

    def currencies(self) -> List[str]:
        seen: Dict[str, None] = {}
        for base, quote in self._rates:
            seen.setdefault(base)
            seen.setdefault(quote)
        return list(seen)

    def _leg(self, base: str, quote: str) -> Optional[Decimal]:
        direct = self._rates.get((base, quote))
        if direct is not None:
            return direct
        inverse = self._rates.get((quote, base))
        if inverse is not None:
            return ONE / inverse
        return None

    def rate(self, base: str, quote: str) -> Decimal:
        base = normalize_currency_code(base)
        quote = normalize_currency_code(quote)
        if base == quote:
            return ONE

        leg = self._leg(base, quote)
        if leg is not None:
            return leg

        # одна пересадка: base -> X -> quote
        for mid in self.currencies():
            if mid in (base, quote):
                continue
            first = self._leg(base, mid)
            if first is None:
                continue
            second = self._leg(mid, quote)
            if second is not None:
                return first * second

        raise MissingExchangeRateError(base, quote)

    def convert(self, amount: Decimal, base: str, quote: str) -> Decimal:
        return D(amount) * self.rate(base, quote)


def as_exchange_rates(rates) -> ExchangeRates:
    if isinstance(rates, ExchangeRates):
        return rates
    return ExchangeRates(rates)


@dataclass(frozen=True)
class NormalizedGraph:
    graph: DebtGraph
    working_currency: str
    provenance: Dict[Tuple[str, str], Counter] = field(default_factory=dict)

    def pair_currency(self, payer: str, receiver: str) -> Optional[str]:
        """
        Валюта, в которой пара реально рассчитывалась (самая частая).
        Сначала смотрим пару в том же направлении, потом обратную.
        При равенстве частот — та, что встретилась первой.
        """
        for key in ((payer, receiver), (receiver, payer)):
            counter = self.provenance.get(key)
            if counter:
                return counter.most_common(1)[0][0]
        return None


def normalize(graph: DebtGraph, rates, working_currency: str) -> NormalizedGraph:
    rates = as_exchange_rates(rates)
    working_currency = normalize_currency_code(working_currency)

    provenance: Dict[Tuple[str, str], Counter] = {}
    out: List[Debt] = []
    for debt in graph.debts:
        provenance.setdefault((debt.from_user, debt.to_user), Counter())[debt.currency] += 1
        if debt.currency == working_currency:
            out.append(debt)
            continue
        amount = rates.convert(debt.amount, debt.currency, working_currency)
        out.append(replace(debt, amount=amount, currency=working_currency))

    log.debug(
        "normalized %d debts from %s into %s",
        len(out),
        ",".join(graph.currencies()) or "-",
        working_currency,
    )
    return NormalizedGraph(
        graph=graph.with_debts(out),
        working_currency=working_currency,
        provenance=provenance,
    )


def _convert_one(s: Settlement, rates: ExchangeRates, target: str) -> Settlement:
    if s.currency == target:
        return s
    rate = rates.rate(s.currency, target)
    return Settlement(
        payer_id=s.payer_id,
        receiver_id=s.receiver_id,
        amount=quantize(s.amount * rate),
        currency=target,
        original_amount=s.amount,
        original_currency=s.currency,
        exchange_rate=rate,
    )


def redenominate(
    settlements: Iterable[Settlement],
    normalized: NormalizedGraph,
    rates,
    preferred_currency: Optional[str] = None,
) -> List[Settlement]:
    """
    Переоценка плана: каждую выплату переводим в валюту, которой пара
    пользовалась чаще всего; для пар без истории — в preferred_currency;
    иначе оставляем в рабочей валюте.
    """
    rates = as_exchange_rates(rates)
    preferred = normalize_currency_code(preferred_currency) if preferred_currency else None

    result: List[Settlement] = []
    for s in settlements:
        target = normalized.pair_currency(s.payer_id, s.receiver_id) or preferred
        result.append(_convert_one(s, rates, target) if target else s)
    return result


def convert_settlements(settlements: Iterable[Settlement], rates, currency: str) -> List[Settlement]:
    """Перевести все выплаты в одну валюту (например, предпочитаемую пользователем)."""
    rates = as_exchange_rates(rates)
    target = normalize_currency_code(currency)
    return [_convert_one(s, rates, target) for s in settlements]
