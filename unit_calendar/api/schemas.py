"""Response schemas for calendar reads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class MissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    campaign_id: str
    name: str
    description: str | None
    date: str
    time: str
    location: str | None
    max_personnel: int | None
    status: str


class CampaignResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    start_date: str
    end_date: str
    status: str
    missions: list[MissionResponse] = []


class TrainingRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    date: str
    time: str
    location: str | None
    instructor: str | None
    max_personnel: int | None
    status: str
