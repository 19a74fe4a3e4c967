"""API V1 Router"""

from fastapi import APIRouter

# Import endpoint routers
from app.api.v1.endpoints import (
    stays, payments, slips, incomes, expenses, finance
)

# Create API v1 router
api_router = APIRouter()

# Include endpoint routers with prefixes and tags
api_router.include_router(stays.router, prefix="/stays", tags=["Stays"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])
api_router.include_router(slips.router, tags=["Payment Slips"])
api_router.include_router(incomes.router, prefix="/incomes", tags=["Income"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["Expenses"])
api_router.include_router(finance.router, prefix="/finance", tags=["Financial Reports"])
