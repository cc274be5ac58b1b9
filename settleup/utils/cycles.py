# settleup/utils/cycles.py
# -----------------------------------------------------------------------------
# СХЛОПЫВАНИЕ ЦИКЛИЧЕСКИХ ДОЛГОВ (A -> B -> C -> A)
# -----------------------------------------------------------------------------
# Алгоритм:
#   1) DFS по рёбрам «должен» ищет ориентированный цикл;
#   2) из каждого ребра цикла вычитаем минимальную сумму по циклу;
#   3) рёбра, ставшие ≈ 0 (меньше цента), выкидываем;
#   4) повторяем, пока циклов не останется.
# Каждая итерация убирает минимум одно ребро → процесс конечен.
#
# Детерминизм: обход стартует с участников в порядке graph.users,
# исходящие рёбра — в порядке graph.debts. Выжившие рёбра сохраняют исходный порядок.
#
# Валюты: цикл собирается только из рёбер ОДНОЙ валюты —
# EUR-долг не гасится о USD-долг без курса.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from settleup.models.debt import Debt, DebtGraph
from settleup.utils.money import is_zero

log = logging.getLogger(__name__)

_WHITE, _GRAY, _BLACK = 0, 1, 2


def _find_cycle(
    users: Sequence[str],
    debts: Sequence[Debt],
    edge_ids: Sequence[int],
) -> Optional[List[int]]:
    """
    Возвращает индексы рёбер (в debts) первого найденного цикла или None.
    Итеративный DFS: рекурсия упёрлась бы в лимит на длинных цепочках.
    """
    adj: Dict[str, List[int]] = {}
    for idx in edge_ids:
        adj.setdefault(debts[idx].from_user, []).append(idx)

    state: Dict[str, int] = {}
    for start in users:
        if state.get(start, _WHITE) != _WHITE or start not in adj:
            continue

        state[start] = _GRAY
        path_nodes = [start]
        path_pos = {start: 0}
        path_edges: List[int] = []  # path_nodes[k] достигнут по path_edges[k-1]
        stack = [iter(adj[start])]

        while stack:
            advanced = False
            for idx in stack[-1]:
                nxt = debts[idx].to_user
                st = state.get(nxt, _WHITE)
                if st == _GRAY:
                    return path_edges[path_pos[nxt]:] + [idx]
                if st == _WHITE:
                    state[nxt] = _GRAY
                    path_pos[nxt] = len(path_nodes)
                    path_nodes.append(nxt)
                    path_edges.append(idx)
                    stack.append(iter(adj.get(nxt, ())))
                    advanced = True
                    break
            if not advanced:
                node = path_nodes.pop()
                del path_pos[node]
                state[node] = _BLACK
                stack.pop()
                if path_edges:
                    path_edges.pop()
    return None


def simplify_circular_debts(graph: DebtGraph) -> DebtGraph:
    """
    Граф без циклов. Ацикличный граф возвращается без изменений (равный входному).
    Net-балансы участников при этом не меняются.
    """
    if len(graph.debts) < 2:
        return graph

    debts = list(graph.debts)
    amounts: List[Decimal] = [d.amount for d in debts]
    alive = [True] * len(debts)
    cancelled = 0

    changed = True
    while changed:
        changed = False
        for code in graph.currencies():
            edge_ids = [i for i, d in enumerate(debts) if alive[i] and d.currency == code]
            cycle = _find_cycle(graph.users, debts, edge_ids)
            if cycle is None:
                continue

            m = min(amounts[i] for i in cycle)
            for i in cycle:
                amounts[i] -= m
                if is_zero(amounts[i]):
                    alive[i] = False
            cancelled += 1
            log.debug(
                "cancelled cycle %s by %s %s",
                " -> ".join([debts[cycle[0]].from_user] + [debts[i].to_user for i in cycle]),
                m,
                code,
            )
            changed = True

    if not cancelled:
        return graph

    out: List[Debt] = []
    for i, debt in enumerate(debts):
        if not alive[i]:
            continue
        out.append(debt if amounts[i] == debt.amount else replace(debt, amount=amounts[i]))
    log.debug("cycle simplification: %d cycles, %d -> %d debts", cancelled, len(debts), len(out))
    return graph.with_debts(out)
