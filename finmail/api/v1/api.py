from fastapi import APIRouter
from finmail.api.v1.endpoints import auth, emails, files, profiles, transactions

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(auth.router)
api_router.include_router(emails.router)
api_router.include_router(transactions.router)
api_router.include_router(profiles.router)
api_router.include_router(files.router)
