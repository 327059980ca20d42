"""Sermon discussions API: weekly discussion posts on a series, and their comments."""
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from fellowship.api.deps import get_current_user, get_user_info_cache
from fellowship.core.constants import DISCUSSION_TYPES
from fellowship.db.session import get_db
from fellowship.models.user import User
from fellowship.services import sermon_service
from fellowship.services.user_info import UserInfoCache

router = APIRouter()

DiscussionType = Literal[DISCUSSION_TYPES]


class CreateDiscussionBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    sermon_series_id: int = Field(..., alias="sermonSeries")
    sermon_id: int | None = Field(None, alias="sermonId")
    week_number: int = Field(..., ge=1, alias="weekNumber")
    type: DiscussionType = "discussion"
    scripture_references: list[str] = Field(default_factory=list, alias="scriptureReferences")
    discussion_questions: list[str] = Field(default_factory=list, alias="discussionQuestions")


class UpdateDiscussionBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str | None = Field(None, min_length=1, max_length=200)
    content: str | None = Field(None, min_length=1)
    sermon_series_id: int | None = Field(None, alias="sermonSeries")
    sermon_id: int | None = Field(None, alias="sermonId")
    week_number: int | None = Field(None, ge=1, alias="weekNumber")
    type: DiscussionType | None = None
    scripture_references: list[str] | None = Field(None, alias="scriptureReferences")
    discussion_questions: list[str] | None = Field(None, alias="discussionQuestions")


class CommentBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=1000)


@router.post("", status_code=201)
def create_discussion(
    body: CreateDiscussionBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = sermon_service.create_discussion(db, user, body.model_dump())
    return {"status": "success", "data": sermon_service.serialize_discussion(db, row, cache)}


@router.get("")
def list_discussions(
    series_id: int | None = Query(None, alias="sermonSeries"),
    sermon_id: int | None = Query(None, alias="sermonId"),
    week_number: int | None = Query(None, alias="weekNumber"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    rows = sermon_service.list_discussions(db, series_id=series_id, sermon_id=sermon_id, week_number=week_number)
    return {
        "status": "success",
        "results": len(rows),
        "data": [sermon_service.serialize_discussion(db, r, cache) for r in rows],
    }


@router.get("/{discussion_id}")
def get_discussion(
    discussion_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = sermon_service.get_discussion_or_404(db, discussion_id)
    return {"status": "success", "data": sermon_service.serialize_discussion(db, row, cache)}


@router.patch("/{discussion_id}")
def update_discussion(
    discussion_id: int,
    body: UpdateDiscussionBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = sermon_service.update_discussion(db, user, discussion_id, body.model_dump(exclude_unset=True))
    return {"status": "success", "data": sermon_service.serialize_discussion(db, row, cache)}


@router.delete("/{discussion_id}")
def delete_discussion(
    discussion_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    sermon_service.delete_discussion(db, user, discussion_id)
    return {"status": "success", "data": None}


# --- Comments ---


@router.post("/{discussion_id}/comments", status_code=201)
def add_comment(
    discussion_id: int,
    body: CommentBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = sermon_service.add_discussion_comment(db, user, discussion_id, body.content)
    return {"status": "success", "data": sermon_service.serialize_discussion_comment(row, cache)}


@router.patch("/{discussion_id}/comments/{comment_id}")
def update_comment(
    discussion_id: int,
    comment_id: int,
    body: CommentBody,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UserInfoCache = Depends(get_user_info_cache),
) -> dict[str, Any]:
    row = sermon_service.update_discussion_comment(db, user, discussion_id, comment_id, body.content)
    return {"status": "success", "data": sermon_service.serialize_discussion_comment(row, cache)}


@router.delete("/{discussion_id}/comments/{comment_id}")
def delete_comment(
    discussion_id: int, comment_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> dict[str, Any]:
    sermon_service.delete_discussion_comment(db, user, discussion_id, comment_id)
    return {"status": "success", "data": None}
