"""
Response models shared across routers.

Upstream payloads are reshaped into plain dicts by `wow_backend`; these models
document and filter what the API returns.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, SerializerFunctionWrapHandler, model_serializer

MediaType = Literal["movie", "tv"]


class ProviderInfo(BaseModel):
    provider_id: int
    provider_name: str
    logo_path: str | None = None


class Availability(BaseModel):
    flatrate: list[ProviderInfo] | None = None
    buy: list[ProviderInfo] | None = None
    rent: list[ProviderInfo] | None = None

    @model_serializer(mode="wrap")
    def _omit_missing_groups(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        return {group: providers for group, providers in handler(self).items() if providers is not None}


class TitleSummary(BaseModel):
    id: int
    media_type: MediaType
    title: str | None
    overview: str = ""
    poster_path: str | None = None
    release_year: int | None = None
    providers: Availability | None = None


class PersonSummary(BaseModel):
    id: int
    name: str | None
    profile_path: str | None = None
    known_for_department: str | None = None


class Genre(BaseModel):
    id: int
    name: str


class DetailResponse(TitleSummary):
    genres: list[Genre] | None = None
    runtime: int | None = None
    episode_run_time: list[int] | None = None
    first_air_date: str | None = None
    release_date: str | None = None


class CastCredit(BaseModel):
    id: int
    name: str | None
    character: str | None = None
    profile_path: str | None = None


class CrewCredit(BaseModel):
    id: int
    name: str | None
    job: str | None = None
    department: str | None = None
    profile_path: str | None = None


class CreditsResponse(BaseModel):
    cast: list[CastCredit] = []
    crew: list[CrewCredit] = []


class ExternalIds(BaseModel):
    imdb_id: str | None = None


class StreamingOffer(BaseModel):
    service: str | None = None
    streamingType: str | None = None
    link: str | None = None
    videoLink: str | None = None
    quality: str | None = None


class PersonDetails(BaseModel):
    id: int
    name: str | None
    profile_path: str | None = None
    biography: str = ""
    known_for_department: str | None = None


class PersonCredit(BaseModel):
    id: int
    media_type: MediaType
    title: str | None
    poster_path: str | None = None
    release_year: int | None = None
    character: str | None = None

