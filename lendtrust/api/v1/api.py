# lendtrust/api/v1/api.py
from fastapi import APIRouter

from lendtrust.api.v1.endpoints import activities, analytics, auth, items, lendings, users

api_router_v1 = APIRouter(prefix="/api/v1")

api_router_v1.include_router(auth.router, prefix="/auth")
api_router_v1.include_router(users.router, prefix="/users")
api_router_v1.include_router(items.router, prefix="/items")
api_router_v1.include_router(lendings.router, prefix="/lendings")
api_router_v1.include_router(activities.router, prefix="/activities")
api_router_v1.include_router(analytics.router, prefix="/analytics")
