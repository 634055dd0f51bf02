"""
FastAPI Application - Review Syndication Service
Moderates storefront reviews, syndicates them across product bundles and
publishes per-product rating aggregates to the catalog.
"""

# Load environment variables from .env file FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api import bundles, health, products, reviews
from app.core.config import config
from app.core.errors import ErrorResponse, error_response_handler, http_exception_handler, validation_details
from app.core.logger import logger
from app.core.telemetry import instrument_app
from app.db.mongodb import close_mongo_connection, connect_to_mongo, db
from app.middleware import TraceContextMiddleware
from app.repositories.review import MongoReviewStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting Review Syndication Service...")
    await connect_to_mongo()
    # Indexes are per collection; the shop passed here is irrelevant.
    await MongoReviewStore(db.database, shop="").ensure_indexes()

    logger.info(
        "Review Syndication Service started successfully",
        metadata={
            "event": "service_started",
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port,
        }
    )

    yield

    logger.info("Shutting down Review Syndication Service...")
    await close_mongo_connection()


app = FastAPI(
    title="Review Syndication Service",
    description="Review moderation, bundle syndication and rating aggregation",
    version=config.service_version,
    lifespan=lifespan
)

instrument_app(app)

app.add_exception_handler(ErrorResponse, error_response_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, lambda request, exc: JSONResponse(
    status_code=422,
    content={"error": "Validation error", "details": validation_details(exc)}
))

# Add W3C Trace Context middleware
app.add_middleware(TraceContextMiddleware)

app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["reviews"])
app.include_router(products.router, prefix="/api/products", tags=["products"])
app.include_router(bundles.router, prefix="/api/bundles", tags=["bundles"])


if __name__ == "__main__":
    import uvicorn

    logger.info(
        f"Starting {config.service_name} on port {config.port}",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port
        }
    )

    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.environment == "development"
    )
