"""Sermons API. Reading needs a signed-in user; writing needs the leader or developer role."""
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.orm import Session

from fellowship.api.deps import get_current_user, get_user_info_cache
from fellowship.db.session import get_db
from fellowship.models.user import User
from fellowship.services import sermon_service
from fellowship.services.user_info import UserInfoCache

router = APIRouter()


class Speaker(BaseModel):
    """A member of the congregation (user_id) or a guest (name)."""

    user_id: int | None = None
    name: str | None = Field(None, max_length=128)
    photo: str | None = None

    @model_validator(mode="after")
    def _user_or_name(self):
        if self.user_id is None and not (self.name or "").strip():
            raise ValueError("Each speaker needs either user_id or name")
        return self


class CreateSermonBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=300)
    sermon_series_id: int | None = Field(None, alias="sermonSeries")
    speakers: list[Speaker] = Field(default_factory=list)
    summary: str | None = None
    key_points: list[str] = Field(default_factory=list, alias="keyPoints")
    verses: list[str] = Field(default_factory=list)


class UpdateSermonBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str | None = Field(None, min_length=1, max_length=300)
    sermon_series_id: int | None = Field(None, alias="sermonSeries")
    speakers: list[Speaker] | None = None
    summary: str | None = None
    key_points: list[str] | None = Field(None, alias="keyPoints")
    verses: list[str] | None = None


def _fields(body: BaseModel, **kwargs) -> dict[str, Any]:
    fields = body.model_dump(**kwargs)
    if fields.get("speakers") is not None:
        fields["speakers"] = [{k: v for k, v in s.items() if v is not None} for s in fields["speakers"]]
    return fields


@router.post("", status_code=201)
def create_sermon(
    body: CreateSermonBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = sermon_service.create_sermon(db, user, _fields(body))
    return {"status": "success", "data": sermon_service.serialize_sermon(db, row, cache)}


@router.get("")
def list_sermons(
    series_id: int | None = Query(None, alias="sermonSeries"),
    title: str | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    rows = sermon_service.list_sermons(db, series_id=series_id, title=title)
    cache.get_many([r.created_by for r in rows])
    return {
        "status": "success",
        "results": len(rows),
        "data": [sermon_service.serialize_sermon(db, r, cache) for r in rows],
    }


@router.get("/{sermon_id}")
def get_sermon(
    sermon_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = sermon_service.get_sermon_or_404(db, sermon_id)
    return {"status": "success", "data": sermon_service.serialize_sermon(db, row, cache)}


@router.patch("/{sermon_id}")
def update_sermon(
    sermon_id: int,
    body: UpdateSermonBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = sermon_service.update_sermon(db, user, sermon_id, _fields(body, exclude_unset=True))
    return {"status": "success", "data": sermon_service.serialize_sermon(db, row, cache)}


@router.delete("/{sermon_id}")
def delete_sermon(
    sermon_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    sermon_service.delete_sermon(db, user, sermon_id)
    return {"status": "success", "data": None}
