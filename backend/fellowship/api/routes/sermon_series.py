"""Sermon series API. Any signed-in member may start a series; only its creator may change it."""
from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from fellowship.api.deps import get_current_user, get_user_info_cache
from fellowship.core.constants import SERIES_STATUSES
from fellowship.db.session import get_db
from fellowship.models.user import User
from fellowship.services import sermon_service
from fellowship.services.user_info import UserInfoCache

router = APIRouter()

SeriesStatus = Literal[SERIES_STATUSES]


class CoverImage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., min_length=1, max_length=1024)
    public_id: str = Field(..., min_length=1, alias="publicId")


class CreateSeriesBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=1000)
    number_of_weeks: int | None = Field(None, ge=1, le=52, alias="numberOfWeeks")
    cover_image: CoverImage | None = Field(None, alias="coverImage")
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime | None = Field(None, alias="endDate")
    status: SeriesStatus = "upcoming"


class UpdateSeriesBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, min_length=10, max_length=1000)
    number_of_weeks: int | None = Field(None, ge=1, le=52, alias="numberOfWeeks")
    cover_image: CoverImage | None = Field(None, alias="coverImage")
    start_date: datetime | None = Field(None, alias="startDate")
    end_date: datetime | None = Field(None, alias="endDate")
    status: SeriesStatus | None = None


@router.post("", status_code=201)
def create_series(
    body: CreateSeriesBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = sermon_service.create_series(db, user, body.model_dump())
    return {"status": "success", "data": sermon_service.serialize_series(row, cache)}


@router.get("")
def list_series(
    search: str | None = None,
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    status: SeriesStatus | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    rows = sermon_service.list_series(db, search=search, start_date=start_date, end_date=end_date, status=status)
    cache.get_many([r.created_by for r in rows])
    return {"status": "success", "results": len(rows), "data": [sermon_service.serialize_series(r, cache) for r in rows]}


@router.get("/{series_id}")
def get_series(
    series_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = sermon_service.get_series_or_404(db, series_id)
    return {"status": "success", "data": sermon_service.serialize_series(row, cache)}


@router.patch("/{series_id}")
def update_series(
    series_id: int,
    body: UpdateSeriesBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = sermon_service.update_series(db, user, series_id, body.model_dump(exclude_unset=True))
    return {"status": "success", "data": sermon_service.serialize_series(row, cache)}


@router.delete("/{series_id}")
def delete_series(
    series_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    sermon_service.delete_series(db, user, series_id)
    return {"status": "success", "data": None}
