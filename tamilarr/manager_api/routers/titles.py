"""Catalog endpoints for querying and curating titles."""
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_catalog_store, get_link_service
from ..schemas import (
    CatalogMetricsModel,
    LinkRequest,
    StreamModel,
    TitleListModel,
    TitleMetadataUpdate,
    TitleModel,
)
from ..services.link_service import CanonicalIdNotFoundError, LinkService, TitleNotFoundError
from ..stores.catalog_store import CatalogStore

router = APIRouter(prefix="/titles", tags=["titles"])


@router.get("", response_model=TitleListModel)
def list_titles(
    query: str | None = Query(default=None, description="Optional case-insensitive title substring."),
    linked_only: bool = Query(default=False, description="Only return titles with an IMDb id."),
    limit: int = Query(default=100, ge=1, le=500, description="Maximum number of titles."),
    offset: int = Query(default=0, ge=0, description="Number of titles to skip."),
    store: CatalogStore = Depends(get_catalog_store),
) -> TitleListModel:
    """Return titles ordered by year (newest first) then discovery time."""

    if query:
        items = store.search_titles(query, limit=limit, offset=offset, linked_only=linked_only)
    else:
        items = store.list_titles(limit=limit, offset=offset, linked_only=linked_only)
    return TitleListModel(items=items, limit=limit, offset=offset)


@router.get("/metrics", response_model=CatalogMetricsModel)
def catalog_metrics(store: CatalogStore = Depends(get_catalog_store)) -> CatalogMetricsModel:
    """Return linked/unlinked counts."""

    return store.metrics()


@router.get("/canonical/{imdb_id}", response_model=TitleModel)
def get_title_by_canonical_id(
    imdb_id: str, store: CatalogStore = Depends(get_catalog_store)
) -> TitleModel:
    title = store.get_title_by_canonical_id(imdb_id)
    if title is None:
        raise HTTPException(status_code=404, detail="Title not found")
    return title


@router.get("/{title_id}", response_model=TitleModel)
def get_title(title_id: int, store: CatalogStore = Depends(get_catalog_store)) -> TitleModel:
    """Return a single title, raising when missing."""

    title = store.get_title(title_id)
    if title is None:
        raise HTTPException(status_code=404, detail="Title not found")
    return title


@router.get("/{title_id}/streams", response_model=list[StreamModel])
def list_streams(title_id: int, store: CatalogStore = Depends(get_catalog_store)) -> list[StreamModel]:
    if store.get_title(title_id) is None:
        raise HTTPException(status_code=404, detail="Title not found")
    return store.list_streams_for_title(title_id)


@router.patch("/{title_id}", response_model=TitleModel)
def update_title(
    title_id: int,
    update: TitleMetadataUpdate,
    store: CatalogStore = Depends(get_catalog_store),
) -> TitleModel:
    """Merge the supplied fields; null fields leave stored values untouched."""

    title = store.update_title_metadata(title_id, update)
    if title is None:
        raise HTTPException(status_code=404, detail="Title not found")
    return title


@router.post("/{title_id}/link", response_model=TitleModel)
def link_title(
    title_id: int,
    request: LinkRequest,
    service: LinkService = Depends(get_link_service),
) -> TitleModel:
    """Resolve an IMDb id through TMDB and link the title to it."""

    try:
        return service.link(title_id, request.imdb_id)
    except TitleNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except CanonicalIdNotFoundError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
