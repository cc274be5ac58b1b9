# settleup/settings.py
# Настройки из окружения (.env подхватывается через python-dotenv).
# Модуль только читает переменные, глобального изменяемого состояния здесь нет.

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# Рабочая валюта, в которую сводится мультивалютный граф, если вызывающий не указал свою
WORKING_CURRENCY = (os.getenv("SETTLE_WORKING_CURRENCY") or "USD").upper().strip()

# Алгоритм по умолчанию: minCashFlow | greedy | friendPreference
DEFAULT_ALGORITHM = (os.getenv("SETTLE_DEFAULT_ALGORITHM") or "minCashFlow").strip()

# Схлопывать ли циклические долги перед расчётом плана
SIMPLIFY_CYCLES = os.getenv("SETTLE_SIMPLIFY_CYCLES", "1") == "1"

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()

CORS_ORIGINS = [
    o.strip()
    for o in (os.getenv("CORS_ORIGINS") or "http://localhost:3000,http://localhost:5173").split(",")
    if o.strip()
]
