"""API routes."""

from fastapi import APIRouter

from catalog.routes import products, submissions, users

api_router = APIRouter()

# Catalog search
api_router.include_router(products.router, prefix="/v1/products", tags=["products"])

# Crowdsourced submissions (duplicate gate, rewards)
api_router.include_router(submissions.router, prefix="/v1/submissions", tags=["submissions"])

# Contributors (tier)
api_router.include_router(users.router, prefix="/v1/users", tags=["users"])
