"""
Campaign Planner Service Main Application

FastAPI application for campaign planning views, duplication and status
upkeep.
Port: 8260
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from core.config import configure_logging, get_settings

from .campaign_planner_service import CampaignPlannerService
from .factory import CampaignPlannerServiceFactory
from .models import (
    Campaign,
    CampaignListResponse,
    ChannelKpisResponse,
    ChannelRollup,
    DashboardSummary,
    DatePreset,
    DateRange,
    DuplicateCohortRequest,
    DuplicationConfig,
    DuplicationResult,
    HealthResponse,
    LivenessResponse,
    PeriodCatalog,
    PeriodType,
    PerformanceAlert,
    ReadinessResponse,
    StatusRefreshResult,
)
from .period_matcher import resolve_date_preset
from .protocols import (
    CampaignNotFoundError,
    CampaignPersistenceError,
    CampaignValidationError,
    DataShapeError,
)

settings = get_settings()
configure_logging(settings.logging)
logger = logging.getLogger(__name__)

# Service configuration
SERVICE_NAME = settings.service_name
SERVICE_PORT = settings.port
SERVICE_VERSION = "1.0.0"

# Track startup time for uptime calculation
startup_time = time.time()

# Global factory instance
factory: Optional[CampaignPlannerServiceFactory] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global factory

    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")

    factory = CampaignPlannerServiceFactory(settings)
    await factory.initialize()

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")
    await factory.close()
    factory = None


# Create FastAPI application
app = FastAPI(
    title="Campaign Planner Service",
    description="Campaign tracking: status upkeep, period views, cohort duplication, KPIs and alerts",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ====================
# Exception Handlers
# ====================


@app.exception_handler(CampaignNotFoundError)
async def campaign_not_found_handler(request: Request, exc: CampaignNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(CampaignValidationError)
async def validation_error_handler(request: Request, exc: CampaignValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc), "field": exc.field},
    )


@app.exception_handler(CampaignPersistenceError)
async def persistence_error_handler(request: Request, exc: CampaignPersistenceError):
    content: Dict[str, Any] = {"detail": str(exc)}
    if exc.result is not None:
        content["createdCount"] = exc.result.created_count
        content["result"] = exc.result.model_dump(mode="json", by_alias=True)
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=content)


@app.exception_handler(DataShapeError)
async def data_shape_error_handler(request: Request, exc: DataShapeError):
    logger.error(f"Malformed stored campaign {exc.record_id}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc), "recordId": exc.record_id},
    )


# ====================
# Dependencies
# ====================


def get_service() -> CampaignPlannerService:
    """Get campaign planner service from factory"""
    if not factory:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return factory.service


def get_date_range(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    preset: Optional[DatePreset] = Query(None),
) -> Optional[DateRange]:
    """Date filter from a preset or an explicit start/end pair; None for no filter"""
    if preset is not None:
        return resolve_date_preset(preset, start=start_date, end=end_date)
    if start_date is None and end_date is None:
        return None
    if start_date is None or end_date is None:
        raise CampaignValidationError(
            "start_date and end_date must be given together",
            field="start_date" if start_date is None else "end_date",
        )
    try:
        return DateRange(start=start_date, end=end_date, preset=DatePreset.CUSTOM)
    except ValidationError as e:
        raise CampaignValidationError(f"Invalid date range: {e}", field="start_date")


# ====================
# Health Endpoints
# ====================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    dependencies = {}

    if factory:
        db_healthy = await factory.repository.health_check()
        dependencies["postgres"] = "healthy" if db_healthy else "unhealthy"

        reference_healthy = await factory.reference_data_client.health_check()
        dependencies["reference_data"] = "healthy" if reference_healthy else "degraded"

    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        port=SERVICE_PORT,
        version=SERVICE_VERSION,
        dependencies=dependencies,
    )


@app.get("/health/ready", response_model=ReadinessResponse, tags=["Health"])
async def readiness_check():
    """Readiness check endpoint"""
    checks = {}
    details = {}

    if factory:
        db_healthy = await factory.repository.health_check()
        checks["database"] = db_healthy
        details["database"] = "Connected" if db_healthy else "Connection failed"
    else:
        checks["factory"] = False
        details["factory"] = "Factory not initialized"

    ready = all(checks.get(k, False) for k in ["database"])

    return ReadinessResponse(
        ready=ready,
        checks=checks,
        details=details,
    )


@app.get("/health/live", response_model=LivenessResponse, tags=["Health"])
async def liveness_check():
    """Liveness check endpoint"""
    return LivenessResponse(
        alive=True,
        uptime_seconds=time.time() - startup_time,
    )


# ====================
# Campaign Views
# ====================


@app.get("/api/v1/campaigns", response_model=CampaignListResponse, tags=["Campaigns"])
async def list_campaigns(
    date_range: Optional[DateRange] = Depends(get_date_range),
    campaign_status: Optional[str] = Query(None, alias="status"),
    channel: Optional[str] = Query(None),
    service: CampaignPlannerService = Depends(get_service),
):
    """List campaigns overlapping the date filter"""
    campaigns = await service.list_campaigns(date_range, campaign_status, channel)
    return CampaignListResponse(campaigns=campaigns, total=len(campaigns))


@app.get("/api/v1/campaigns/periods/{year}", response_model=PeriodCatalog, tags=["Periods"])
async def get_period_catalog(
    year: int,
    service: CampaignPlannerService = Depends(get_service),
):
    """Quarter and month options of a year"""
    return service.get_period_catalog(year)


@app.get("/api/v1/campaigns/period", response_model=CampaignListResponse, tags=["Periods"])
async def list_campaigns_in_period(
    label: str = Query(..., description="e.g. 'Q1 2025' or 'January 2025'"),
    period_type: PeriodType = Query(PeriodType.MONTHLY),
    service: CampaignPlannerService = Depends(get_service),
):
    """List campaigns overlapping a named period"""
    campaigns = await service.list_campaigns_in_period(label, period_type)
    return CampaignListResponse(campaigns=campaigns, total=len(campaigns))


# ====================
# Dashboard Endpoints
# ====================


@app.get("/api/v1/campaigns/dashboard", response_model=DashboardSummary, tags=["Dashboard"])
async def get_dashboard(
    date_range: Optional[DateRange] = Depends(get_date_range),
    campaign_status: Optional[str] = Query(None, alias="status"),
    channel: Optional[str] = Query(None),
    service: CampaignPlannerService = Depends(get_service),
):
    """KPIs, alerts and channel rollups"""
    return await service.get_dashboard(date_range, campaign_status, channel)


@app.get(
    "/api/v1/campaigns/channels/{channel}/rollup",
    response_model=ChannelRollup,
    tags=["Dashboard"],
)
async def get_channel_rollup(
    channel: str,
    date_range: Optional[DateRange] = Depends(get_date_range),
    service: CampaignPlannerService = Depends(get_service),
):
    return await service.get_channel_rollup(channel, date_range)


@app.get(
    "/api/v1/campaigns/channels/{channel}/kpis",
    response_model=ChannelKpisResponse,
    tags=["Dashboard"],
)
async def get_channel_kpis(
    channel: str,
    date_range: Optional[DateRange] = Depends(get_date_range),
    service: CampaignPlannerService = Depends(get_service),
):
    return await service.get_channel_kpis(channel, date_range)


@app.get(
    "/api/v1/campaigns/alerts",
    response_model=List[PerformanceAlert],
    tags=["Dashboard"],
)
async def get_alerts(
    date_range: Optional[DateRange] = Depends(get_date_range),
    channel: Optional[str] = Query(None),
    service: CampaignPlannerService = Depends(get_service),
):
    """Performance alerts, high severity first"""
    return await service.get_alerts(date_range, channel)


# ====================
# Mutations
# ====================


@app.post(
    "/api/v1/campaigns/duplicate",
    response_model=DuplicationResult,
    status_code=status.HTTP_201_CREATED,
    tags=["Campaigns"],
)
async def duplicate_cohort(
    request: DuplicateCohortRequest,
    service: CampaignPlannerService = Depends(get_service),
):
    """Duplicate every campaign of a brand+channel into a new date window"""
    config = DuplicationConfig.model_validate(
        request.model_dump(exclude={"brand", "channel"})
    )
    return await service.duplicate_cohort(request.brand, request.channel, config)


@app.patch("/api/v1/campaigns/{campaign_id}", response_model=Campaign, tags=["Campaigns"])
async def update_campaign(
    campaign_id: str,
    patch: Dict[str, Any] = Body(...),
    service: CampaignPlannerService = Depends(get_service),
):
    """Partially update a campaign"""
    return await service.update_campaign(campaign_id, patch)


@app.post(
    "/api/v1/campaigns/statuses/refresh",
    response_model=StatusRefreshResult,
    tags=["Campaigns"],
)
async def refresh_statuses(service: CampaignPlannerService = Depends(get_service)):
    """Promote SCHEDULED/ACTIVE campaigns whose dates have been reached"""
    return await service.refresh_statuses()


def main():
    """Run the service"""
    import uvicorn

    uvicorn.run(
        "microservices.campaign_planner_service.main:app",
        host=settings.host,
        port=SERVICE_PORT,
        reload=settings.debug,
        log_level="info",
    )


if __name__ == "__main__":
    main()
