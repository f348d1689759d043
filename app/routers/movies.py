"""Movie CRUD endpoints."""

import logging

from fastapi import APIRouter, File, Path, Query, Response, UploadFile, status
from fastapi.responses import JSONResponse

from app.config import settings
from app.models import ActionResult, MovieCreateRequest, MovieUpdateRequest
from app.services.movie_query import MovieFiltering, MovieQueryService
from app.services.movie_writer import MovieWriteService, RequestResult, ResponseType
from app.services.paging import Paging
from app.services.sorting import Sorting

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/movie", tags=["movie"])

# Query keys bind case-insensitively to these spellings.
QUERY_KEYS = ("name", "sortBy", "pageNumber", "pageSize")

_query: MovieQueryService | None = None
_writer: MovieWriteService | None = None


def init_router(query: MovieQueryService, writer: MovieWriteService) -> None:
    global _query, _writer
    _query = query
    _writer = writer


def _get_services() -> tuple[MovieQueryService, MovieWriteService]:
    assert _query is not None and _writer is not None, "movie router not initialized"
    return _query, _writer


def envelope(status_code: int, result: ActionResult, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=result.to_content(), headers=headers)


def _failure(status_code: int, message: str) -> JSONResponse:
    return envelope(status_code, ActionResult(status=False, messages=[message]))


_FAILURE_STATUS = {
    ResponseType.DUPLICATE: status.HTTP_400_BAD_REQUEST,
    ResponseType.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


def _outcome(action: str, result: RequestResult) -> JSONResponse:
    if not result.status:
        return _failure(_FAILURE_STATUS[result.response_type], f"{action} {result.response_type.value}")
    return envelope(status.HTTP_200_OK, ActionResult())


@router.get("")
def search_movies(
    name: str = Query("", description="Case-insensitive substring of the movie name"),
    sort_by: str = Query("", alias="sortBy", description="e.g. 'name desc,id'"),
    page_number: int = Query(1, alias="pageNumber", ge=1),
    page_size: int = Query(settings.default_page_size, alias="pageSize", ge=1, le=settings.max_page_size),
):
    """Search movies; the paging header is also returned in ``X-Pagination``."""
    query, _ = _get_services()
    result = query.search(
        MovieFiltering(name=name),
        Sorting(sort_by=sort_by),
        Paging(page_number=page_number, page_size=page_size),
    )
    return envelope(
        status.HTTP_200_OK,
        ActionResult(data=result.model_dump(by_alias=True, mode="json")),
        headers={"X-Pagination": result.paging_header.to_json()},
    )


@router.get("/{movie_id}")
def get_movie(movie_id: int = Path(...)):
    """Get one movie with its director and actors."""
    query, _ = _get_services()
    movie = query.get(movie_id)
    if movie is None:
        return _failure(status.HTTP_404_NOT_FOUND, "Get NotFound")
    return envelope(status.HTTP_200_OK, ActionResult(data=movie.model_dump(by_alias=True, mode="json")))


@router.post("")
def create_movie(payload: MovieCreateRequest):
    _, writer = _get_services()
    return _outcome("Create", writer.create(payload.name, payload.director_id))


@router.put(
    "/{movie_id}",
    responses={
        400: {"description": "Update BadRequest, Update Duplicate or a validation failure"},
        404: {"description": "Update NotFound"},
    },
)
def update_movie(payload: MovieUpdateRequest, movie_id: int = Path(...)):
    if movie_id != payload.id:
        return _failure(status.HTTP_400_BAD_REQUEST, "Update BadRequest")
    _, writer = _get_services()
    return _outcome("Update", writer.update(payload.id, payload.name, payload.director_id))


@router.delete("/{movie_id}")
def delete_movie(movie_id: int = Path(...)):
    _, writer = _get_services()
    return _outcome("Delete", writer.delete(movie_id))


@router.post("/Import")
def import_movies(file: UploadFile = File(...)):
    """Accepts an upload and echoes its filename; nothing is imported yet."""
    logger.info("Import received %s", file.filename)
    return file.filename


@router.post("/Export")
def export_movies():
    return Response(status_code=status.HTTP_200_OK)
