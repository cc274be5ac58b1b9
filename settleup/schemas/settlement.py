# settleup/schemas/settlement.py

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class SettlementOut(BaseModel):
    """
    Схема ответа settle-up: одна выплата плана.
    original_* и exchange_rate заполнены, только если сумма переведена в другую валюту.
    """
    model_config = ConfigDict(from_attributes=True)

    payer_id: str     # кто платит (должник)
    receiver_id: str  # кому платят (кредитор)
    amount: float     # сумма выплаты (>0, до 2 знаков)
    currency: str
    original_amount: Optional[float] = None
    original_currency: Optional[str] = None
    exchange_rate: Optional[float] = None


class AlgorithmMetricsOut(BaseModel):
    transaction_count: int
    total_amount: float
    average_amount: float
    friendship_utilization: float
    original_transaction_count: int = 0
    reduction_percentage: int = 0


class AlgorithmReportOut(BaseModel):
    algorithm: str
    currency: Optional[str] = None
    settlements: List[SettlementOut]
    metrics: AlgorithmMetricsOut
    visualization: Dict[str, Any]   # network_graph, sankey_diagram, summary
    breakdown: Dict[str, Any]
    explanation: Dict[str, Any]


class ComparisonOut(BaseModel):
    algorithms: Dict[str, AlgorithmReportOut]
    best_by_transaction_count: Optional[str] = None
    best_by_friendship_utilization: Optional[str] = None


class SettlementExplanationOut(BaseModel):
    """План вместе с данными для экрана расчёта."""
    algorithm: str
    currency: Optional[str] = None
    settlements: List[SettlementOut]
    visualization: Dict[str, Any]
    breakdown: Dict[str, Any]
    explanation: Dict[str, Any]
