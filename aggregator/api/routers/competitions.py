"""
aggregator/api/routers/competitions.py

Catalog endpoints: filtered listing, lookup and manual create, update, delete.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from aggregator.schemas.competitions import (
    CompetitionCreateRequest,
    CompetitionPageResponse,
    CompetitionResponse,
    CompetitionUpdateRequest,
)
from aggregator.scraping.errors import DuplicateCompetition, StorageUnavailable
from aggregator.services.catalog_service import CatalogService, get_catalog_service
from db.session import get_db

router = APIRouter(prefix="/competitions", tags=["competitions"])


@router.get("", response_model=CompetitionPageResponse)
def list_competitions(
    status_filter: str | None = Query(default=None, alias="status", description="upcoming, active or completed"),
    host: str | None = Query(default=None, description="Exact host match"),
    date_from: datetime | None = Query(default=None, description="Earliest start date, inclusive"),
    date_to: datetime | None = Query(default=None, description="Latest start date, inclusive"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> CompetitionPageResponse:
    try:
        result = catalog_service.list_competitions(
            storage=catalog_service.storage_for(db),
            status=status_filter,
            host=host,
            date_from=date_from,
            date_to=date_to,
            page=page,
            limit=limit,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    return CompetitionPageResponse(
        data=[CompetitionResponse.from_record(record, now=result.now) for record in result.items],
        page=result.page,
        limit=result.limit,
        total=result.total,
    )


@router.get("/{record_id}", response_model=CompetitionResponse)
def get_competition(
    record_id: str,
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> CompetitionResponse:
    try:
        record = catalog_service.get_competition(
            storage=catalog_service.storage_for(db),
            record_id=record_id,
        )
    except StorageUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Competition '{record_id}' not found.",
        )
    return CompetitionResponse.from_record(record)


@router.post("", response_model=CompetitionResponse, status_code=status.HTTP_201_CREATED)
def create_competition(
    body: CompetitionCreateRequest,
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> CompetitionResponse:
    """
    Add a competition by hand.

    Raises HTTP 409 when the title duplicates an existing record.
    """
    try:
        record = catalog_service.create_competition(
            storage=catalog_service.storage_for(db),
            fields=body.record_fields(),
            sources=body.sources,
        )
    except DuplicateCompetition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return CompetitionResponse.from_record(record)


@router.put("/{record_id}", response_model=CompetitionResponse)
def update_competition(
    record_id: str,
    body: CompetitionUpdateRequest,
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> CompetitionResponse:
    try:
        record = catalog_service.update_competition(
            storage=catalog_service.storage_for(db),
            record_id=record_id,
            changes=body.changes(),
        )
    except DuplicateCompetition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Competition '{record_id}' not found.",
        )
    return CompetitionResponse.from_record(record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_competition(
    record_id: str,
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> Response:
    try:
        deleted = catalog_service.delete_competition(
            storage=catalog_service.storage_for(db),
            record_id=record_id,
        )
    except StorageUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Competition '{record_id}' not found.",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
