"""
Public response shapes built from stored records.

Everything here is a pure function of its arguments. Relations are expanded
one level deep: an image expands its references with image stubs, and a
reference expands its images with reference stubs.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from portfolio_backend.db import (
    AboutRecord,
    CategoryRecord,
    ImageRecord,
    LogoRecord,
    ReferenceRecord,
)
from portfolio_backend.localization import pick_lang
from portfolio_backend.media import build_media


def _stub(entity_id: str) -> dict:
    return {"id": entity_id, "documentId": entity_id}


def _resolve(ids: Iterable[str], records: Sequence) -> list:
    by_id = {record.id: record for record in records}
    # Link rows are not checked against the entity tables, so unknown ids are
    # dropped here.
    return [by_id[entity_id] for entity_id in ids if entity_id in by_id]


def project_category(cat: CategoryRecord, lang: str) -> dict:
    return {
        "id": cat.id,
        "title": pick_lang(cat.title, lang),
        "description": pick_lang(cat.description, lang),
        "position": cat.position or 0,
        "isActive": bool(cat.is_active),
        "translations": {
            "title": cat.title.as_dict(),
            "description": cat.description.as_dict(),
        },
    }


def project_image(
    img: ImageRecord,
    lang: str,
    categories: Sequence[CategoryRecord],
    references: Sequence[ReferenceRecord],
    base_url: str,
    nested: bool = False,
    parent_reference_id: Optional[str] = None,
) -> dict:
    """
    Project an image with its categories and references.

    ``nested`` marks an image rendered inside the reference
    ``parent_reference_id``; its references are then just a stub for that
    reference.
    """
    if nested:
        reference_objs = [_stub(parent_reference_id)] if parent_reference_id else []
    else:
        reference_objs = [
            project_reference(ref, lang, base_url, nested=True)
            for ref in _resolve(img.reference_ids, references)
        ]
    return {
        "id": img.id,
        "documentId": img.id,
        "Title": pick_lang(img.title, lang),
        "alt": pick_lang(img.alt, lang),
        "home": bool(img.home),
        "position": img.position or 0,
        "createdAt": img.created_at,
        "image": build_media(img.image_path, base_url),
        "categories": [
            project_category(cat, lang)
            for cat in _resolve(img.category_ids, categories)
        ],
        "references": reference_objs,
        "translations": {
            "title": img.title.as_dict(),
            "alt": img.alt.as_dict(),
        },
    }


def project_reference(
    ref: ReferenceRecord,
    lang: str,
    base_url: str,
    nested: bool = True,
    images: Sequence[ImageRecord] = (),
    categories: Sequence[CategoryRecord] = (),
) -> dict:
    """
    Project a reference. With ``nested`` its images are id stubs, otherwise
    each linked image found in ``images`` is projected in full.
    """
    if nested:
        image_objs = [_stub(image_id) for image_id in ref.image_ids]
    else:
        image_objs = [
            project_image(
                img,
                lang,
                categories,
                (),
                base_url,
                nested=True,
                parent_reference_id=ref.id,
            )
            for img in _resolve(ref.image_ids, images)
        ]
    return {
        "id": ref.id,
        "documentId": ref.id,
        "title": pick_lang(ref.title, lang),
        "description": pick_lang(ref.description, lang),
        "year": ref.year or "",
        "logo_light": build_media(ref.logo_light_path, base_url),
        "logo_dark": build_media(ref.logo_dark_path, base_url),
        "images": image_objs,
        "translations": {
            "title": ref.title.as_dict(),
            "description": ref.description.as_dict(),
        },
    }


def project_about(about: AboutRecord, lang: str) -> dict:
    return {
        "About_text": pick_lang(about.content, lang),
        "translations": about.content.as_dict(),
        "updatedAt": about.updated_at,
    }


def project_logo(logo: LogoRecord, lang: str, base_url: str) -> dict:
    return {
        "id": logo.id,
        "img": build_media(logo.image_path, base_url),
        "alt": pick_lang(logo.alt, lang),
        "translations": logo.alt.as_dict(),
    }


def project_images(
    images: Iterable[ImageRecord],
    lang: str,
    categories: Sequence[CategoryRecord],
    references: Sequence[ReferenceRecord],
    base_url: str,
    nested: bool = False,
) -> list[dict]:
    return [
        project_image(img, lang, categories, references, base_url, nested=nested)
        for img in images
    ]
