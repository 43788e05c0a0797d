from fastapi import APIRouter, Depends, HTTPException

from ..analytics.gateway import DataAccessGateway, SqlAlchemyGateway
from ..database.connection import get_session_factory
from ..services.analytics import AnalyticsService
from .presentation import with_colors

router = APIRouter(prefix="/analytics", tags=["analytics"])


def get_gateway() -> DataAccessGateway:
    """Get data access gateway bound to the application database"""
    return SqlAlchemyGateway(get_session_factory())


def get_analytics_service(gateway: DataAccessGateway = Depends(get_gateway)) -> AnalyticsService:
    """Get analytics service with dependencies"""
    return AnalyticsService(gateway)


@router.get("/deals")
async def get_deal_analytics(
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Deal pipeline: conversion, average size, sales cycle, stages, monthly revenue, top performers"""
    try:
        report = analytics_service.get_deal_analytics()
        return with_colors(report.model_dump(mode="json"))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error calculating deal analytics: {str(e)}")


@router.get("/tasks")
async def get_task_analytics(
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Task throughput: completion rate and time, overdue count, SLA compliance, weekly trend"""
    try:
        report = analytics_service.get_task_analytics()
        return with_colors(report.model_dump(mode="json"))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error calculating task analytics: {str(e)}")


@router.get("/leads")
async def get_lead_analytics(
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Lead funnel: conversion, source and status distributions, monthly intake"""
    try:
        report = analytics_service.get_lead_analytics()
        return with_colors(report.model_dump(mode="json"))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error calculating lead analytics: {str(e)}")


@router.get("/overview")
async def get_analytics_overview(
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """Deal, task and lead analytics in a single call"""
    try:
        overview = analytics_service.get_analytics_overview()
        return with_colors(overview.model_dump(mode="json"))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error calculating analytics overview: {str(e)}")
