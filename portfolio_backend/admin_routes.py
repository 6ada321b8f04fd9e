"""
Admin write API. Every route except login requires a bearer token.
"""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Request,
    Response,
    UploadFile,
)

from portfolio_backend.config import Settings, get_settings
from portfolio_backend.db import (
    AboutChanges,
    CategoryChanges,
    DbClient,
    ImageChanges,
    LogoChanges,
    ReferenceChanges,
)
from portfolio_backend.dependencies import (
    get_db_client,
    get_media_storage,
    get_session_store,
    require_admin,
)
from portfolio_backend.query import parse_bool, parse_number
from portfolio_backend.schemas import (
    AboutUpdatePayload,
    CategoryCreatePayload,
    CategoryUpdatePayload,
    DataResponse,
    LoginRequest,
    LoginResponse,
)
from portfolio_backend.sessions import SessionStore
from portfolio_backend.storage import MediaStorage

logger = logging.getLogger(__name__)

router = APIRouter()
protected = APIRouter(dependencies=[Depends(require_admin)])


def _split_ids(value: Optional[str]) -> Optional[list[str]]:
    """Comma-joined ids from a form field; ``None`` when the field was absent."""
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def _position(value) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(parse_number(value, 0))


def _flag(value) -> Optional[bool]:
    if value is None or value == "":
        return None
    return parse_bool(value)


def _field_text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


async def _submitted_fields(request: Request) -> dict[str, str]:
    """
    Text fields exactly as sent, empty strings included. A JSON object body
    is accepted with the same field names; list values become comma-joined
    ids and ``null`` counts as not sent.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON body")
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="Invalid JSON body")
        return {
            key: _field_text(value) for key, value in body.items() if value is not None
        }
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


async def _save_upload(
    storage: MediaStorage, upload: Optional[UploadFile]
) -> Optional[str]:
    if upload is None or not upload.filename:
        return None
    data = await upload.read()
    return storage.save(upload.filename, data, upload.content_type)


async def _media_path(
    storage: MediaStorage, remote_url: Optional[str], upload: Optional[UploadFile]
) -> Optional[str]:
    """A remote URL wins over an uploaded file; ``None`` if neither is given."""
    if remote_url:
        return remote_url
    return await _save_upload(storage, upload)


@router.post("/login", response_model=LoginResponse)
def login(
    payload: Optional[LoginRequest] = None,
    settings: Settings = Depends(get_settings),
    sessions: SessionStore = Depends(get_session_store),
):
    password = payload.password if payload else None
    if not password or not secrets.compare_digest(
        password.encode("utf-8"), settings.admin_password.encode("utf-8")
    ):
        logger.warning("Failed admin login attempt")
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = sessions.create(settings.session_ttl_seconds)
    return LoginResponse(token=token, expiresIn=settings.session_ttl_seconds)


@protected.put("/about", response_model=DataResponse)
def update_about(payload: AboutUpdatePayload, db: DbClient = Depends(get_db_client)):
    about = db.update_about(AboutChanges(content=payload.content()))
    logger.info("Updated about text")
    return DataResponse(data=about.as_dict())


@protected.post("/logo", response_model=DataResponse)
async def update_logo(
    img: Optional[UploadFile] = File(None),
    alt_en: Optional[str] = Form(None),
    alt_tr: Optional[str] = Form(None),
    remoteUrl: Optional[str] = Form(None),
    db: DbClient = Depends(get_db_client),
    storage: MediaStorage = Depends(get_media_storage),
):
    image_path = await _media_path(storage, remoteUrl, img)
    if image_path is None:
        raise HTTPException(
            status_code=400, detail="Please provide a file or remote URL"
        )
    logo = db.update_logo(
        LogoChanges(image_path=image_path, alt={"en": alt_en, "tr": alt_tr})
    )
    logger.info("Updated logo")
    return DataResponse(data=logo.as_dict())


@protected.post("/categories", response_model=DataResponse, status_code=201)
def create_category(
    payload: CategoryCreatePayload, db: DbClient = Depends(get_db_client)
):
    category = db.create_category(
        CategoryChanges(
            id=payload.id,
            title=payload.title.model_dump(),
            description=payload.description.model_dump(),
            position=_position(payload.position) or 0,
            is_active=parse_bool(payload.is_active),
        )
    )
    logger.info("Created category %s", category.id)
    return DataResponse(data=category.as_dict())


@protected.patch("/categories/{category_id}", response_model=DataResponse)
def update_category(
    category_id: str,
    payload: CategoryUpdatePayload,
    db: DbClient = Depends(get_db_client),
):
    category = db.update_category(
        category_id,
        CategoryChanges(
            title=payload.title.model_dump() if payload.title else None,
            description=(
                payload.description.model_dump() if payload.description else None
            ),
            position=_position(payload.position),
            is_active=_flag(payload.is_active),
        ),
    )
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    logger.info("Updated category %s", category_id)
    return DataResponse(data=category.as_dict())


@protected.delete("/categories/{category_id}", status_code=204)
def delete_category(category_id: str, db: DbClient = Depends(get_db_client)):
    db.delete_category(category_id)
    logger.info("Deleted category %s", category_id)
    return Response(status_code=204)


@protected.post("/images", response_model=DataResponse, status_code=201)
async def create_image(
    image: Optional[UploadFile] = File(None),
    title_en: str = Form(""),
    title_tr: str = Form(""),
    alt_en: str = Form(""),
    alt_tr: str = Form(""),
    home: str = Form("false"),
    position: str = Form("0"),
    categories: str = Form(""),
    references: str = Form(""),
    remoteUrl: Optional[str] = Form(None),
    db: DbClient = Depends(get_db_client),
    storage: MediaStorage = Depends(get_media_storage),
):
    image_path = await _media_path(storage, remoteUrl, image)
    if image_path is None:
        raise HTTPException(
            status_code=400, detail="Please provide a file or remote URL"
        )
    record = db.create_image(
        ImageChanges(
            title={"en": title_en, "tr": title_tr},
            alt={"en": alt_en, "tr": alt_tr},
            home=parse_bool(home),
            position=_position(position),
            image_path=image_path,
            category_ids=_split_ids(categories),
            reference_ids=_split_ids(references),
        )
    )
    logger.info("Created image %s", record.id)
    return DataResponse(data=record.as_dict())


@protected.patch("/images/{image_id}", response_model=DataResponse)
async def update_image(
    image_id: str,
    request: Request,
    image: Optional[UploadFile] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: MediaStorage = Depends(get_media_storage),
):
    """
    Partial update. Accepted text fields: title_en, title_tr, alt_en, alt_tr,
    home, position, categories, references, remoteUrl. An omitted field is
    left unchanged; ``categories=""`` clears the image's categories.
    """
    if db.get_image(image_id) is None:
        raise HTTPException(status_code=404, detail="Image not found")
    fields = await _submitted_fields(request)
    record = db.update_image(
        image_id,
        ImageChanges(
            title={"en": fields.get("title_en"), "tr": fields.get("title_tr")},
            alt={"en": fields.get("alt_en"), "tr": fields.get("alt_tr")},
            home=_flag(fields.get("home")),
            position=_position(fields.get("position")),
            image_path=await _media_path(storage, fields.get("remoteUrl"), image),
            category_ids=_split_ids(fields.get("categories")),
            reference_ids=_split_ids(fields.get("references")),
        ),
    )
    if not record:
        raise HTTPException(status_code=404, detail="Image not found")
    logger.info("Updated image %s", image_id)
    return DataResponse(data=record.as_dict())


@protected.delete("/images/{image_id}", status_code=204)
def delete_image(image_id: str, db: DbClient = Depends(get_db_client)):
    db.delete_image(image_id)
    logger.info("Deleted image %s", image_id)
    return Response(status_code=204)


@protected.post("/references", response_model=DataResponse, status_code=201)
async def create_reference(
    logo_light: Optional[UploadFile] = File(None),
    logo_dark: Optional[UploadFile] = File(None),
    title_en: str = Form(""),
    title_tr: str = Form(""),
    description_en: str = Form(""),
    description_tr: str = Form(""),
    year: str = Form(""),
    images: str = Form(""),
    remoteLogoLight: Optional[str] = Form(None),
    remoteLogoDark: Optional[str] = Form(None),
    db: DbClient = Depends(get_db_client),
    storage: MediaStorage = Depends(get_media_storage),
):
    reference = db.create_reference(
        ReferenceChanges(
            title={"en": title_en, "tr": title_tr},
            description={"en": description_en, "tr": description_tr},
            year=year,
            logo_light_path=await _media_path(storage, remoteLogoLight, logo_light),
            logo_dark_path=await _media_path(storage, remoteLogoDark, logo_dark),
            image_ids=_split_ids(images),
        )
    )
    logger.info("Created reference %s", reference.id)
    return DataResponse(data=reference.as_dict())


@protected.patch("/references/{reference_id}", response_model=DataResponse)
async def update_reference(
    reference_id: str,
    request: Request,
    logo_light: Optional[UploadFile] = File(None),
    logo_dark: Optional[UploadFile] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: MediaStorage = Depends(get_media_storage),
):
    """
    Partial update. Accepted text fields: title_en, title_tr, description_en,
    description_tr, year, images, remoteLogoLight, remoteLogoDark.
    """
    if db.get_reference(reference_id) is None:
        raise HTTPException(status_code=404, detail="Reference not found")
    fields = await _submitted_fields(request)
    reference = db.update_reference(
        reference_id,
        ReferenceChanges(
            title={"en": fields.get("title_en"), "tr": fields.get("title_tr")},
            description={
                "en": fields.get("description_en"),
                "tr": fields.get("description_tr"),
            },
            year=fields.get("year"),
            logo_light_path=await _media_path(
                storage, fields.get("remoteLogoLight"), logo_light
            ),
            logo_dark_path=await _media_path(
                storage, fields.get("remoteLogoDark"), logo_dark
            ),
            image_ids=_split_ids(fields.get("images")),
        ),
    )
    if not reference:
        raise HTTPException(status_code=404, detail="Reference not found")
    logger.info("Updated reference %s", reference_id)
    return DataResponse(data=reference.as_dict())


@protected.delete("/references/{reference_id}", status_code=204)
def delete_reference(reference_id: str, db: DbClient = Depends(get_db_client)):
    db.delete_reference(reference_id)
    logger.info("Deleted reference %s", reference_id)
    return Response(status_code=204)


router.include_router(protected)
