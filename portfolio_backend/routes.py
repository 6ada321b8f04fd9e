"""
Public read API consumed by the gallery frontend.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from portfolio_backend.db import DbClient
from portfolio_backend.dependencies import (
    get_db_client,
    get_media_base_url,
    get_request_language,
)
from portfolio_backend.projection import (
    project_about,
    project_category,
    project_image,
    project_images,
    project_logo,
    project_reference,
)
from portfolio_backend.query import (
    ImageFilters,
    PageRequest,
    parse_bool,
    query_images,
    sort_categories,
)
from portfolio_backend.schemas import DataResponse, ImageListResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def get_image_filters(
    home_eq: Optional[str] = Query(None, alias="filters[home][$eq]"),
    home: Optional[str] = Query(None),
    category_title_eq: Optional[str] = Query(
        None, alias="filters[categories][Title][$eq]"
    ),
    category: Optional[str] = Query(None),
) -> ImageFilters:
    """Parse the bracketed filter query parameters once at the boundary."""
    home_value = home_eq if home_eq is not None else home
    return ImageFilters(
        home=None if home_value is None else parse_bool(home_value),
        category_title=category_title_eq or category or None,
    )


def get_page_request(
    page_eq: Optional[str] = Query(None, alias="pagination[page]"),
    page: Optional[str] = Query(None),
    page_size_eq: Optional[str] = Query(None, alias="pagination[pageSize]"),
    page_size: Optional[str] = Query(None, alias="pageSize"),
) -> PageRequest:
    return PageRequest(
        page=page_eq if page_eq is not None else page,
        page_size=page_size_eq if page_size_eq is not None else page_size,
    )


@router.get("/about", response_model=DataResponse)
def get_about(
    db: DbClient = Depends(get_db_client),
    lang: str = Depends(get_request_language),
):
    return DataResponse(data=project_about(db.get_about(), lang))


@router.get("/logo", response_model=DataResponse)
def get_logo(
    db: DbClient = Depends(get_db_client),
    lang: str = Depends(get_request_language),
    base_url: str = Depends(get_media_base_url),
):
    return DataResponse(data=project_logo(db.get_logo(), lang, base_url))


@router.get("/categories", response_model=DataResponse)
def list_categories(
    db: DbClient = Depends(get_db_client),
    lang: str = Depends(get_request_language),
):
    categories = sort_categories(db.list_categories())
    return DataResponse(data=[project_category(cat, lang) for cat in categories])


@router.get("/references", response_model=DataResponse)
def list_references(
    db: DbClient = Depends(get_db_client),
    lang: str = Depends(get_request_language),
    base_url: str = Depends(get_media_base_url),
):
    return DataResponse(
        data=[
            project_reference(ref, lang, base_url, nested=True)
            for ref in db.list_references()
        ]
    )


@router.get("/references/{reference_id}", response_model=DataResponse)
def get_reference(
    reference_id: str,
    db: DbClient = Depends(get_db_client),
    lang: str = Depends(get_request_language),
    base_url: str = Depends(get_media_base_url),
):
    reference = db.get_reference(reference_id)
    if not reference:
        raise HTTPException(status_code=404, detail="Reference not found")
    return DataResponse(
        data=project_reference(
            reference,
            lang,
            base_url,
            nested=False,
            images=db.list_images(),
            categories=db.list_categories(),
        )
    )


@router.get("/images/{image_id}", response_model=DataResponse)
def get_image(
    image_id: str,
    db: DbClient = Depends(get_db_client),
    lang: str = Depends(get_request_language),
    base_url: str = Depends(get_media_base_url),
):
    image = db.get_image(image_id)
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    return DataResponse(
        data=project_image(
            image, lang, db.list_categories(), db.list_references(), base_url
        )
    )


@router.get("/images", response_model=ImageListResponse)
def list_images(
    filters: ImageFilters = Depends(get_image_filters),
    page_request: PageRequest = Depends(get_page_request),
    db: DbClient = Depends(get_db_client),
    lang: str = Depends(get_request_language),
    base_url: str = Depends(get_media_base_url),
):
    categories = db.list_categories()
    references = db.list_references()
    result = query_images(db.list_images(), categories, filters, page_request)
    return ImageListResponse(
        data=project_images(result.items, lang, categories, references, base_url),
        meta=result.meta,
    )
