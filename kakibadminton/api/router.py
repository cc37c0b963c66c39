"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter, Depends
from kakibadminton.api.deps import verify_api_key
from kakibadminton.api.routes import users, sessions, payments, proofs, sweeps

api_router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_api_key)])
api_router.include_router(users.router)
api_router.include_router(sessions.router)
api_router.include_router(payments.router)
api_router.include_router(proofs.router)
api_router.include_router(sweeps.router)
