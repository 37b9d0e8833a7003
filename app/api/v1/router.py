"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from app.api.v1 import (
    auth,
    bookings,
    fare_routes,
    realtime,
    routes,
    taxis,
    users,
)

api_router = APIRouter()

# Authentication
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])

# Users
api_router.include_router(users.router, prefix="/users", tags=["Users"])

# Taxis (vehicles)
api_router.include_router(taxis.router, prefix="/taxis", tags=["Taxis"])

# Fare catalog
api_router.include_router(fare_routes.router, prefix="/taxi", tags=["Fare Catalog"])

# Named corridors
api_router.include_router(routes.router, prefix="/routes", tags=["Routes"])

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Realtime monitoring
api_router.include_router(realtime.router, prefix="/realtime", tags=["Realtime"])
