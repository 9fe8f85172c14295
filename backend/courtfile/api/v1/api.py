"""
Main API router aggregator
"""
from fastapi import APIRouter

from courtfile.api.v1.endpoints import (
    admin,
    auth,
    cases,
    evidence,
    health,
    hearings,
    payments,
    user,
)

api_router = APIRouter()

# Include routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(user.router, prefix="/user", tags=["User"])
api_router.include_router(cases.router, prefix="/cases", tags=["Cases"])
api_router.include_router(hearings.router, prefix="/hearings", tags=["Hearings"])
api_router.include_router(evidence.router, prefix="/evidence", tags=["Evidence"])
api_router.include_router(payments.router, prefix="/payment", tags=["Payments"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(health.router, prefix="/health", tags=["Health"])
