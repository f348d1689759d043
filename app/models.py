"""Pydantic request/response schemas for the Movie Catalog API."""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialized as camelCase on the wire, populated by either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Shared sub-models

class DirectorOut(CamelModel):
    id: int
    name: str


class ActorOut(CamelModel):
    id: int
    name: str


class MovieSearchResult(CamelModel):
    id: int
    name: str
    director: str = ""
    actors: list[str] = Field(default_factory=list)


class MovieDetail(CamelModel):
    id: int
    name: str
    director: DirectorOut | None = None
    actors: list[ActorOut] = Field(default_factory=list)


class PagingHeader(CamelModel):
    page_number: int
    page_size: int
    total_count: int
    total_page: int
    has_prev_page: bool
    has_next_page: bool
    prev_page_number: int
    next_page_number: int

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class PagingResult(CamelModel):
    paging_header: PagingHeader
    paging_data: list[MovieSearchResult] = Field(default_factory=list)


# Request / Response

MovieName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]


class MovieCreateRequest(CamelModel):
    name: MovieName = Field(..., examples=["Inception"])
    director_id: int


class MovieUpdateRequest(CamelModel):
    id: int
    name: MovieName
    director_id: int


class MovieUpdateEvent(CamelModel):
    id: int
    name: str
    director_id: int


class ActionResult(CamelModel):
    status: bool = True
    messages: list[str] | None = None
    data: Any = None

    def to_content(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class HealthResponse(CamelModel):
    status: str
    database: bool
    event_bus: dict
