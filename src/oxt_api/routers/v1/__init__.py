from fastapi import APIRouter

from oxt_api.routers.v1 import (
    apr,
    delegators,
    ranking,
    stats,
    validators,
)

v1_router = APIRouter(prefix="/v1")

v1_router.include_router(validators.router)
v1_router.include_router(delegators.router)
v1_router.include_router(apr.router)
v1_router.include_router(ranking.router)
v1_router.include_router(stats.router)
