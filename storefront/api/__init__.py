# storefront/api/__init__.py
from fastapi import APIRouter
from storefront.api.routers import carts, health, orders

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(carts.router)
api_router.include_router(orders.router)
