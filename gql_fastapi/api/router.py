from fastapi import APIRouter
from gql_fastapi.api.endpoints import hello

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(hello.router)
