# settleup/utils/rounding.py
# -----------------------------------------------------------------------------
# ОКРУГЛЕНИЕ ПЛАНА ДО ЦЕНТОВ
# -----------------------------------------------------------------------------
# Алгоритмы считают на точных Decimal-балансах, центы появляются только здесь,
# на выходе. Округлять каждую выплату по отдельности нельзя: у участника с
# несколькими переводами ошибки складываются и вылезают за 0.01.
#
# Поэтому:
#   1) итог каждого участника по плану (получил - отдал) округляем методом
#      наибольшего остатка так, чтобы в каждой связной компоненте плана сумма
#      итогов осталась ровно нулевой;
#   2) по остовному дереву компоненты суммы переводов однозначно
#      восстанавливаются из итогов участников (от листьев к корню).
# Итог участника отличается от точного меньше чем на цент.
# Перевод, который после округления стал нулевым, выбрасывается.
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import replace
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Dict, List, Sequence, Set

from settleup.models.settlement import Settlement
from settleup.utils.money import ZERO, quantize

CENT = Decimal("0.01")


def plan_flows(plan: Sequence[Settlement]) -> Dict[str, Decimal]:
    """Итог по плану для каждого участника: получено - отдано."""
    flows: Dict[str, Decimal] = {}
    for s in plan:
        flows[s.payer_id] = flows.get(s.payer_id, ZERO) - s.amount
        flows[s.receiver_id] = flows.get(s.receiver_id, ZERO) + s.amount
    return flows


def round_to_cents_preserving_sum(values: Dict[str, Decimal]) -> Dict[str, Decimal]:
    """
    Метод наибольшего остатка: каждое значение — floor или ceil до цента,
    сумма центов совпадает с округлённой суммой исходных значений.
    При равных остатках — порядок ключей.
    """
    floors = {uid: v.quantize(CENT, rounding=ROUND_FLOOR) for uid, v in values.items()}
    shortfall = sum(values.values(), ZERO) - sum(floors.values(), ZERO)
    extra = int((shortfall / CENT).to_integral_value(rounding=ROUND_HALF_UP))

    by_remainder = sorted(values, key=lambda uid: -(values[uid] - floors[uid]))
    for uid in by_remainder[:max(extra, 0)]:
        floors[uid] += CENT
    return floors


def round_plan_to_cents(plan: Sequence[Settlement]) -> List[Settlement]:
    if not plan:
        return []

    flows = plan_flows(plan)
    incident: Dict[str, List[int]] = {}
    for idx, s in enumerate(plan):
        incident.setdefault(s.payer_id, []).append(idx)
        incident.setdefault(s.receiver_id, []).append(idx)

    amounts: Dict[int, Decimal] = {}
    visited: Set[str] = set()

    for root in incident:
        if root in visited:
            continue

        # обход в ширину: порядок вершин и ребро к родителю
        order = [root]
        parent_edge: Dict[str, int] = {}
        visited.add(root)
        k = 0
        while k < len(order):
            uid = order[k]
            k += 1
            for idx in incident[uid]:
                s = plan[idx]
                other = s.receiver_id if s.payer_id == uid else s.payer_id
                if other not in visited:
                    visited.add(other)
                    parent_edge[other] = idx
                    order.append(other)

        # сколько каждому участнику ещё нужно получить по неразмеченным рёбрам
        demand = round_to_cents_preserving_sum({uid: flows[uid] for uid in order})

        tree_edges = set(parent_edge.values())
        for uid in order:
            for idx in incident[uid]:
                if idx in tree_edges or idx in amounts:
                    continue
                # ребро вне остова (у алгоритмов планы — леса, но не полагаемся)
                s = plan[idx]
                amounts[idx] = quantize(s.amount)
                demand[s.receiver_id] -= amounts[idx]
                demand[s.payer_id] += amounts[idx]

        for uid in reversed(order[1:]):
            idx = parent_edge[uid]
            s = plan[idx]
            inflow = demand[uid]
            amounts[idx] = inflow if s.receiver_id == uid else -inflow
            parent = s.payer_id if s.receiver_id == uid else s.receiver_id
            demand[parent] += inflow
            demand[uid] = ZERO

    result: List[Settlement] = []
    for idx, s in enumerate(plan):
        amount = quantize(amounts[idx])
        if amount == ZERO:
            continue
        if amount < ZERO:
            s = replace(s, payer_id=s.receiver_id, receiver_id=s.payer_id)
            amount = -amount
        result.append(replace(s, amount=amount))
    return result
