"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    query: str = Field(min_length=1)
    project_override: str | None = None


class ContextRefreshResult(BaseModel):
    project_id: str
    labels: int
    members: int
    milestones: int
    fetched_at: str


class ErrorDetail(BaseModel):
    reason: str
    message: str
    suggestion: str | None = None
