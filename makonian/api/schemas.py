from __future__ import annotations

from pydantic import BaseModel, Field


class WordStatusUpdateRequest(BaseModel):
    status: str


class FavoriteToggleRequest(BaseModel):
    word_key: str


class QuizStartRequest(BaseModel):
    scope: str | int = Field(default="random")
    question_type: str = Field(default="definition")


class QuizAnswerRequest(BaseModel):
    index: int = Field(ge=0)
    selected: str


class PreferencesUpdateRequest(BaseModel):
    unit_view: str | None = None
    theme: str | None = None
