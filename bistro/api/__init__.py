# bistro/api/__init__.py
from fastapi import APIRouter

from bistro.api.routers import health, users, items, carts, orders

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(users.router)
api_router.include_router(items.router)
api_router.include_router(carts.router)
api_router.include_router(orders.router)
