from fastapi import APIRouter
from lfap.routers import (
    auth, leave_requests, subordinates, leave_balances, documents,
    reports, notifications
)

# Routers are aggregated here; main.py only imports this hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(leave_requests.router, tags=["Leave Requests"])
api_router.include_router(subordinates.router, tags=["Subordinates"])
api_router.include_router(leave_balances.router, tags=["Leave Balances"])
api_router.include_router(documents.router, tags=["Supporting Documents"])
api_router.include_router(reports.router, tags=["Reports"])
api_router.include_router(notifications.router, tags=["Notifications"])
