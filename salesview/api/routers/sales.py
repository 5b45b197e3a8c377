"""
Sales routes.

Query parameters are read raw and coerced by `PageRequest.from_query`, so a
malformed number never produces a validation error; list parameters are
comma-separated.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from salesview.domain.models import PageRequest, SortDirection
from salesview.exceptions import StoreUnavailableError
from salesview.service import SalesService

router = APIRouter(prefix="/sales", tags=["Sales"])


def get_service(request: Request) -> SalesService:
    service = request.app.state.service
    if service is None:
        raise StoreUnavailableError("Sales service is not initialised")
    return service


def _page_request(request: Request, **overrides: Any) -> PageRequest:
    return PageRequest.from_query(
        dict(request.query_params),
        default_limit=request.app.state.settings.default_page_size,
        **overrides,
    )


def _page_body(page) -> Dict[str, Any]:
    return {
        "data": page["records"],
        "pagination": page["pagination"].model_dump(by_alias=True),
    }


@router.get("/test")
async def test_route():
    return {"message": "Sales API is working!"}


@router.get("/filters")
async def filter_options(service: SalesService = Depends(get_service)):
    options = await service.get_filter_options()
    return options.model_dump(mode="json", by_alias=True)


@router.get("/range")
async def sales_range(request: Request, service: SalesService = Depends(get_service)):
    result = await service.get_range(_page_request(request))
    return {
        "data": result["records"],
        "totalRecords": result["totalRecords"],
        "lastId": result["lastId"],
    }


@router.get("/optimized")
async def sales_optimized(request: Request, service: SalesService = Depends(get_service)):
    page = await service.get_page(
        _page_request(request, default_sort_order=SortDirection.ASC, optimized=True)
    )
    return _page_body(page)


@router.get("")
async def sales(request: Request, service: SalesService = Depends(get_service)):
    page = await service.get_page(_page_request(request))
    return _page_body(page)


__all__ = ["router", "get_service"]
