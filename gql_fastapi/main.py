import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from gql_fastapi.core.config import settings
from gql_fastapi.api.router import api_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"GraphQL endpoint ready at {settings.GRAPHQL_PATH}")
    yield
    logger.info("GraphQL endpoint shut down")


app = FastAPI(title="GraphQL FastAPI Adapter", lifespan=lifespan)

# Include the master router containing all our endpoints
app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Send GraphQL queries to " + settings.GRAPHQL_PATH}
