"""
Placeholder content written on first startup so a fresh install renders.
"""

from __future__ import annotations

import logging

from portfolio_backend.db import (
    AboutChanges,
    CategoryChanges,
    DbClient,
    ImageChanges,
    LogoChanges,
    ReferenceChanges,
)

logger = logging.getLogger(__name__)


def seed_if_empty(db: DbClient) -> bool:
    """Write sample content unless categories already exist."""
    if db.list_categories():
        return False

    db.update_about(
        AboutChanges(
            content={
                "en": (
                    "<p>Welcome to your bilingual portfolio backend. Use the "
                    "admin panel to replace this copy with your own story.</p>"
                ),
                "tr": (
                    "<p>Çift dilli portföy backend'inize hoş geldiniz. Bu metni "
                    "kendi hikayenizle değiştirmek için yönetim panelini "
                    "kullanın.</p>"
                ),
            }
        )
    )
    db.update_logo(LogoChanges(alt={"en": "Portfolio logo", "tr": "Portföy logosu"}))

    db.create_category(
        CategoryChanges(
            id="cat-architecture",
            title={"en": "architecture", "tr": "mimari"},
            description={"en": "Built environments", "tr": "Yapılı çevreler"},
            position=1,
            is_active=True,
        )
    )
    db.create_category(
        CategoryChanges(
            id="cat-portrait",
            title={"en": "portraits", "tr": "portreler"},
            description={
                "en": "Character driven frames",
                "tr": "Karakter odaklı kareler",
            },
            position=2,
            is_active=True,
        )
    )

    db.create_image(
        ImageChanges(
            id="img-sample-1",
            title={"en": "Sunlit lines", "tr": "Güneşli çizgiler"},
            alt={"en": "Architecture study", "tr": "Mimari çalışması"},
            home=True,
            position=1,
            image_path=(
                "https://images.unsplash.com/photo-1493238792000-8113da705763"
                "?auto=format&fit=crop&w=1200&q=80"
            ),
            category_ids=["cat-architecture"],
        )
    )
    db.create_image(
        ImageChanges(
            id="img-sample-2",
            title={"en": "Soft portrait", "tr": "Yumuşak portre"},
            alt={"en": "Portrait study", "tr": "Portre çalışması"},
            home=True,
            position=2,
            image_path=(
                "https://images.unsplash.com/photo-1524504388940-b1c1722653e1"
                "?auto=format&fit=crop&w=1200&q=80"
            ),
            category_ids=["cat-portrait"],
        )
    )

    db.create_reference(
        ReferenceChanges(
            id="ref-sample",
            title={"en": "Sample brand", "tr": "Örnek marka"},
            description={
                "en": "Demo reference entry. Replace via admin.",
                "tr": "Demo referans kaydı. Yönetim panelinden değiştirin.",
            },
            year="2024",
            image_ids=["img-sample-2"],
        )
    )
    logger.info("Seeded placeholder portfolio content")
    return True
