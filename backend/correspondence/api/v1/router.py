from fastapi import APIRouter

from correspondence.api.v1.endpoints import auth, departments, letters

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth.router)
api_router.include_router(departments.router)
api_router.include_router(letters.router)
