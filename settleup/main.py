# settleup/main.py
# Точка входа FastAPI для движка settle-up.
#  • Роутер /api/settlements (балансы, схлопывание циклов, план, сравнение алгоритмов)
#  • Логирование и CORS настраиваются из окружения (см. settings.py)

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from settleup import settings
from settleup.routers.settlements import router as settlements_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Settle-up Engine",
    description="Оптимизация взаиморасчётов группы: балансы, циклы, мультивалютность, три алгоритма.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(settlements_router, prefix="/api", tags=["Settle-up"])


@app.get("/")
def root():
    """Простой healthcheck."""
    return {"message": "settle-up engine работает!", "docs": "/docs"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("settleup.main:app", host="0.0.0.0", port=8000, reload=False)
