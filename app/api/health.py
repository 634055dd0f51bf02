"""
Health and readiness API endpoints
"""

import asyncio
import time
from datetime import datetime
from typing import Any, Dict, List

import httpx
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.config import config
from app.core.logger import logger
from app.db.mongodb import db

router = APIRouter()

# Track service start time
start_time = time.time()


@router.get("/health")
def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": config.service_name,
        "timestamp": datetime.now().isoformat(),
        "version": config.api_version,
    }


@router.get("/health/live")
def liveness_check():
    return {
        "status": "alive",
        "service": config.service_name,
        "timestamp": datetime.now().isoformat(),
        "uptime": time.time() - start_time,
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness probe: the review store and the Dapr sidecar must both answer"""
    checks = await perform_health_checks()
    failed = [check for check in checks if check["status"] != "healthy"]

    if not failed:
        return {
            "status": "ready",
            "service": config.service_name,
            "timestamp": datetime.now().isoformat(),
            "checks": checks,
        }

    logger.warning(
        f"Readiness check failed - {len(failed)} checks failed",
        metadata={
            "event": "readiness_check_failed",
            "failed_checks": [check["name"] for check in failed],
        }
    )
    return JSONResponse(
        status_code=503,
        content={
            "status": "not ready",
            "service": config.service_name,
            "timestamp": datetime.now().isoformat(),
            "checks": checks,
            "errors": [f"{check['name']}: {check.get('error', 'Unknown error')}" for check in failed],
        },
    )


async def perform_health_checks() -> List[Dict[str, Any]]:
    return list(await asyncio.gather(check_database_health(), check_dapr_sidecar_health()))


def _check_result(name: str, started: float, error: str = None, **extra) -> Dict[str, Any]:
    result = {
        "name": name,
        "status": "unhealthy" if error else "healthy",
        "response_time_ms": round((time.time() - started) * 1000, 2),
        "timestamp": datetime.now().isoformat(),
        **extra,
    }
    if error:
        result["error"] = error
    return result


async def check_database_health() -> Dict[str, Any]:
    """Ping MongoDB"""
    started = time.time()
    if db.client is None:
        return _check_result("database", started, error="Not connected")
    try:
        await asyncio.wait_for(db.client.admin.command("ping"), timeout=config.store_timeout_seconds)
    except Exception as e:
        logger.error(
            f"Database health check failed: {e}",
            metadata={"event": "health_check_database_failed", "host": config.mongodb_host}
        )
        return _check_result("database", started, error=str(e) or type(e).__name__)
    return _check_result("database", started, database=config.mongodb_database)


async def check_dapr_sidecar_health() -> Dict[str, Any]:
    """Catalog publishing goes through the sidecar, so it must be up"""
    started = time.time()
    health_url = f"http://localhost:{config.dapr_http_port}/v1.0/healthz"
    try:
        async with httpx.AsyncClient(timeout=3.0) as client:
            response = await client.get(health_url)
    except httpx.TimeoutException:
        logger.warning(
            "Dapr sidecar connection timeout",
            metadata={"event": "health_check_dapr_timeout", "dapr_port": config.dapr_http_port}
        )
        return _check_result("dapr_sidecar", started, error="Dapr sidecar connection timeout")
    except httpx.HTTPError as e:
        return _check_result("dapr_sidecar", started, error=f"Dapr sidecar check failed: {e}")

    if response.status_code not in (200, 204):
        return _check_result(
            "dapr_sidecar", started,
            error=f"Dapr returned HTTP {response.status_code}",
            http_status=response.status_code,
        )
    return _check_result("dapr_sidecar", started, url=health_url)
