"""
Content store for the portfolio: an in-memory implementation for tests and
development, and a SQLAlchemy implementation backed by an embedded SQLite
file (or any other SQLAlchemy URL).
"""

from __future__ import annotations

import itertools
import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, Iterator, Mapping, Optional, Protocol

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Integer,
    String,
    Table,
    Text,
    create_engine,
    delete,
    event,
    func,
    insert,
    select,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_backend.errors import DuplicateIdError, StorageFault

logger = logging.getLogger(__name__)

ABOUT_ID = "about"
LOGO_ID = "logo"


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return uuid.uuid4().hex


def _unique(ids: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in ids:
        if value:
            seen.setdefault(str(value), None)
    return list(seen)


@dataclass(frozen=True)
class Translations:
    """Parallel per-language strings. Missing languages are empty strings."""

    en: str = ""
    tr: str = ""

    @classmethod
    def from_value(cls, value: object) -> "Translations":
        if isinstance(value, Translations):
            return value
        if isinstance(value, Mapping):
            return cls().merged(value)
        return cls()

    def merged(self, patch: Optional[Mapping[str, Optional[str]]]) -> "Translations":
        """Return a copy with every language present in ``patch`` replaced."""
        if patch is None:
            return self
        en = patch.get("en")
        tr = patch.get("tr")
        return Translations(
            en=self.en if en is None else str(en),
            tr=self.tr if tr is None else str(tr),
        )

    def as_dict(self) -> dict:
        return {"en": self.en, "tr": self.tr}


@dataclass
class AboutRecord:
    content: Translations
    updated_at: int
    id: str = ABOUT_ID

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content.as_dict(),
            "updatedAt": self.updated_at,
        }


@dataclass
class LogoRecord:
    image_path: str
    alt: Translations
    updated_at: int
    id: str = LOGO_ID

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "imagePath": self.image_path,
            "alt": self.alt.as_dict(),
            "updatedAt": self.updated_at,
        }


@dataclass
class CategoryRecord:
    id: str
    title: Translations = field(default_factory=Translations)
    description: Translations = field(default_factory=Translations)
    position: int = 0
    is_active: bool = True

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title.as_dict(),
            "description": self.description.as_dict(),
            "position": self.position,
            "is_active": self.is_active,
        }


@dataclass
class ImageRecord:
    id: str
    title: Translations = field(default_factory=Translations)
    alt: Translations = field(default_factory=Translations)
    home: bool = False
    position: int = 0
    image_path: str = ""
    created_at: int = field(default_factory=now_ms)
    category_ids: list[str] = field(default_factory=list)
    reference_ids: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title.as_dict(),
            "alt": self.alt.as_dict(),
            "home": self.home,
            "position": self.position,
            "imagePath": self.image_path,
            "createdAt": self.created_at,
            "categoryIds": list(self.category_ids),
            "referenceIds": list(self.reference_ids),
        }


@dataclass
class ReferenceRecord:
    id: str
    title: Translations = field(default_factory=Translations)
    description: Translations = field(default_factory=Translations)
    year: str = ""
    logo_light_path: str = ""
    logo_dark_path: str = ""
    image_ids: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title.as_dict(),
            "description": self.description.as_dict(),
            "year": self.year,
            "logoLightPath": self.logo_light_path,
            "logoDarkPath": self.logo_dark_path,
            "imageIds": list(self.image_ids),
        }


# Write payloads. ``None`` means the caller did not supply the field; every
# other value (including 0, False, "" and empty lists) is applied.


@dataclass
class AboutChanges:
    content: Optional[Mapping[str, Optional[str]]] = None


@dataclass
class LogoChanges:
    image_path: Optional[str] = None
    alt: Optional[Mapping[str, Optional[str]]] = None


@dataclass
class CategoryChanges:
    id: Optional[str] = None
    title: Optional[Mapping[str, Optional[str]]] = None
    description: Optional[Mapping[str, Optional[str]]] = None
    position: Optional[int] = None
    is_active: Optional[bool] = None


@dataclass
class ImageChanges:
    id: Optional[str] = None
    title: Optional[Mapping[str, Optional[str]]] = None
    alt: Optional[Mapping[str, Optional[str]]] = None
    home: Optional[bool] = None
    position: Optional[int] = None
    image_path: Optional[str] = None
    created_at: Optional[int] = None
    category_ids: Optional[Iterable[str]] = None
    reference_ids: Optional[Iterable[str]] = None


@dataclass
class ReferenceChanges:
    id: Optional[str] = None
    title: Optional[Mapping[str, Optional[str]]] = None
    description: Optional[Mapping[str, Optional[str]]] = None
    year: Optional[str] = None
    logo_light_path: Optional[str] = None
    logo_dark_path: Optional[str] = None
    image_ids: Optional[Iterable[str]] = None


class DbClient(Protocol):
    """Interface for content persistence."""

    def get_about(self) -> AboutRecord:
        ...

    def update_about(self, changes: AboutChanges) -> AboutRecord:
        ...

    def get_logo(self) -> LogoRecord:
        ...

    def update_logo(self, changes: LogoChanges) -> LogoRecord:
        ...

    def list_categories(self) -> list[CategoryRecord]:
        ...

    def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        ...

    def create_category(self, changes: CategoryChanges) -> CategoryRecord:
        ...

    def update_category(
        self, category_id: str, changes: CategoryChanges
    ) -> Optional[CategoryRecord]:
        ...

    def delete_category(self, category_id: str) -> None:
        ...

    def list_images(self) -> list[ImageRecord]:
        ...

    def get_image(self, image_id: str) -> Optional[ImageRecord]:
        ...

    def create_image(self, changes: ImageChanges) -> ImageRecord:
        ...

    def update_image(
        self, image_id: str, changes: ImageChanges
    ) -> Optional[ImageRecord]:
        ...

    def delete_image(self, image_id: str) -> None:
        ...

    def list_references(self) -> list[ReferenceRecord]:
        ...

    def get_reference(self, reference_id: str) -> Optional[ReferenceRecord]:
        ...

    def create_reference(self, changes: ReferenceChanges) -> ReferenceRecord:
        ...

    def update_reference(
        self, reference_id: str, changes: ReferenceChanges
    ) -> Optional[ReferenceRecord]:
        ...

    def delete_reference(self, reference_id: str) -> None:
        ...


@dataclass
class InMemoryLinkTable:
    """
    Many-to-many link rows between two id columns.

    Rows are kept as a list so duplicates are possible; reads collapse them
    into a sorted set.
    """

    columns: tuple[str, str]
    rows: list[tuple[str, str]] = field(default_factory=list)

    def _index(self, column: str) -> int:
        return self.columns.index(column)

    def linked(self, owner_column: str, owner_id: str) -> list[str]:
        owner = self._index(owner_column)
        other = 1 - owner
        return sorted({row[other] for row in self.rows if row[owner] == owner_id})

    def replace(self, owner_column: str, owner_id: str, ids: Iterable[str]) -> None:
        owner = self._index(owner_column)
        self.discard(owner_column, owner_id)
        for other_id in _unique(ids):
            if owner == 0:
                self.rows.append((owner_id, other_id))
            else:
                self.rows.append((other_id, owner_id))

    def discard(self, owner_column: str, owner_id: str) -> None:
        owner = self._index(owner_column)
        self.rows = [row for row in self.rows if row[owner] != owner_id]


class InMemoryDbClient:
    """Simple in-memory store for development and tests."""

    def __init__(self):
        self.about = AboutRecord(content=Translations(), updated_at=now_ms())
        self.logo = LogoRecord(image_path="", alt=Translations(), updated_at=now_ms())
        self.categories: Dict[str, CategoryRecord] = {}
        self.images: Dict[str, ImageRecord] = {}
        self.references: Dict[str, ReferenceRecord] = {}
        self.image_categories = InMemoryLinkTable(("image_id", "category_id"))
        self.reference_images = InMemoryLinkTable(("reference_id", "image_id"))
        self._seq = itertools.count(1)
        self._image_seq: Dict[str, int] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.__init__()

    # Singletons

    def get_about(self) -> AboutRecord:
        return replace(self.about)

    def update_about(self, changes: AboutChanges) -> AboutRecord:
        self.about = AboutRecord(
            content=self.about.content.merged(changes.content),
            updated_at=now_ms(),
        )
        return self.get_about()

    def get_logo(self) -> LogoRecord:
        return replace(self.logo)

    def update_logo(self, changes: LogoChanges) -> LogoRecord:
        self.logo = LogoRecord(
            image_path=(
                self.logo.image_path
                if changes.image_path is None
                else changes.image_path
            ),
            alt=self.logo.alt.merged(changes.alt),
            updated_at=now_ms(),
        )
        return self.get_logo()

    # Categories

    def list_categories(self) -> list[CategoryRecord]:
        return [replace(cat) for cat in self.categories.values()]

    def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        cat = self.categories.get(category_id)
        return replace(cat) if cat else None

    def create_category(self, changes: CategoryChanges) -> CategoryRecord:
        category_id = changes.id or new_id()
        if category_id in self.categories:
            raise DuplicateIdError("category", category_id)
        self.categories[category_id] = CategoryRecord(
            id=category_id,
            title=Translations().merged(changes.title),
            description=Translations().merged(changes.description),
            position=int(changes.position or 0),
            is_active=True if changes.is_active is None else bool(changes.is_active),
        )
        return self.get_category(category_id)

    def update_category(
        self, category_id: str, changes: CategoryChanges
    ) -> Optional[CategoryRecord]:
        existing = self.categories.get(category_id)
        if not existing:
            return None
        existing.title = existing.title.merged(changes.title)
        existing.description = existing.description.merged(changes.description)
        if changes.position is not None:
            existing.position = int(changes.position)
        if changes.is_active is not None:
            existing.is_active = bool(changes.is_active)
        return self.get_category(category_id)

    def delete_category(self, category_id: str) -> None:
        self.image_categories.discard("category_id", category_id)
        self.categories.pop(category_id, None)

    # Images

    def _with_image_links(self, image: ImageRecord) -> ImageRecord:
        return replace(
            image,
            category_ids=self.image_categories.linked("image_id", image.id),
            reference_ids=self.reference_images.linked("image_id", image.id),
        )

    def list_images(self) -> list[ImageRecord]:
        ordered = sorted(
            self.images.values(),
            key=lambda img: (img.created_at, self._image_seq[img.id]),
            reverse=True,
        )
        return [self._with_image_links(img) for img in ordered]

    def get_image(self, image_id: str) -> Optional[ImageRecord]:
        image = self.images.get(image_id)
        return self._with_image_links(image) if image else None

    def create_image(self, changes: ImageChanges) -> ImageRecord:
        image_id = changes.id or new_id()
        if image_id in self.images:
            raise DuplicateIdError("image", image_id)
        self.images[image_id] = ImageRecord(
            id=image_id,
            title=Translations().merged(changes.title),
            alt=Translations().merged(changes.alt),
            home=bool(changes.home),
            position=int(changes.position or 0),
            image_path=changes.image_path or "",
            created_at=now_ms() if changes.created_at is None else int(changes.created_at),
        )
        self._image_seq[image_id] = next(self._seq)
        self.image_categories.replace("image_id", image_id, changes.category_ids or [])
        self.reference_images.replace("image_id", image_id, changes.reference_ids or [])
        return self.get_image(image_id)

    def update_image(
        self, image_id: str, changes: ImageChanges
    ) -> Optional[ImageRecord]:
        existing = self.images.get(image_id)
        if not existing:
            return None
        existing.title = existing.title.merged(changes.title)
        existing.alt = existing.alt.merged(changes.alt)
        if changes.home is not None:
            existing.home = bool(changes.home)
        if changes.position is not None:
            existing.position = int(changes.position)
        if changes.image_path is not None:
            existing.image_path = changes.image_path
        if changes.category_ids is not None:
            self.image_categories.replace("image_id", image_id, changes.category_ids)
        if changes.reference_ids is not None:
            self.reference_images.replace("image_id", image_id, changes.reference_ids)
        return self.get_image(image_id)

    def delete_image(self, image_id: str) -> None:
        self.reference_images.discard("image_id", image_id)
        self.image_categories.discard("image_id", image_id)
        self.images.pop(image_id, None)
        self._image_seq.pop(image_id, None)

    # References

    def _with_reference_links(self, ref: ReferenceRecord) -> ReferenceRecord:
        return replace(
            ref, image_ids=self.reference_images.linked("reference_id", ref.id)
        )

    def list_references(self) -> list[ReferenceRecord]:
        return [self._with_reference_links(ref) for ref in self.references.values()]

    def get_reference(self, reference_id: str) -> Optional[ReferenceRecord]:
        ref = self.references.get(reference_id)
        return self._with_reference_links(ref) if ref else None

    def create_reference(self, changes: ReferenceChanges) -> ReferenceRecord:
        reference_id = changes.id or new_id()
        if reference_id in self.references:
            raise DuplicateIdError("reference", reference_id)
        self.references[reference_id] = ReferenceRecord(
            id=reference_id,
            title=Translations().merged(changes.title),
            description=Translations().merged(changes.description),
            year=changes.year or "",
            logo_light_path=changes.logo_light_path or "",
            logo_dark_path=changes.logo_dark_path or "",
        )
        self.reference_images.replace(
            "reference_id", reference_id, changes.image_ids or []
        )
        return self.get_reference(reference_id)

    def update_reference(
        self, reference_id: str, changes: ReferenceChanges
    ) -> Optional[ReferenceRecord]:
        existing = self.references.get(reference_id)
        if not existing:
            return None
        existing.title = existing.title.merged(changes.title)
        existing.description = existing.description.merged(changes.description)
        if changes.year is not None:
            existing.year = changes.year
        if changes.logo_light_path is not None:
            existing.logo_light_path = changes.logo_light_path
        if changes.logo_dark_path is not None:
            existing.logo_dark_path = changes.logo_dark_path
        if changes.image_ids is not None:
            self.reference_images.replace("reference_id", reference_id, changes.image_ids)
        return self.get_reference(reference_id)

    def delete_reference(self, reference_id: str) -> None:
        self.reference_images.discard("reference_id", reference_id)
        self.references.pop(reference_id, None)


class SqlLinkTable:
    """Set-valued relation over an association table with two id columns."""

    def __init__(self, table: Table):
        self.table = table

    def _columns(self, owner_column: str):
        owner = self.table.c[owner_column]
        (other,) = [col for col in self.table.c if col.name != owner_column]
        return owner, other

    def linked(self, session: Session, owner_column: str, owner_id: str) -> list[str]:
        owner, other = self._columns(owner_column)
        values = session.execute(select(other).where(owner == owner_id)).scalars()
        return sorted(set(values))

    def grouped(self, session: Session, owner_column: str) -> dict[str, list[str]]:
        owner, other = self._columns(owner_column)
        groups: dict[str, set[str]] = {}
        for owner_id, other_id in session.execute(select(owner, other)):
            groups.setdefault(owner_id, set()).add(other_id)
        return {key: sorted(values) for key, values in groups.items()}

    def replace(
        self, session: Session, owner_column: str, owner_id: str, ids: Iterable[str]
    ) -> None:
        owner, other = self._columns(owner_column)
        session.execute(delete(self.table).where(owner == owner_id))
        rows = [{owner.name: owner_id, other.name: other_id} for other_id in _unique(ids)]
        if rows:
            session.execute(insert(self.table), rows)

    def discard(self, session: Session, owner_column: str, owner_id: str) -> None:
        owner, _ = self._columns(owner_column)
        session.execute(delete(self.table).where(owner == owner_id))


def _engine_options(database_url: str) -> dict:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True, "pool_recycle": 1800}
    options: dict = {"connect_args": {"check_same_thread": False}}
    if not url.database or url.database == ":memory:":
        # One shared connection, otherwise every pooled connection would see
        # its own empty database.
        options["poolclass"] = StaticPool
    else:
        Path(url.database).expanduser().resolve().parent.mkdir(
            parents=True, exist_ok=True
        )
    return options


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL; the default
    deployment is a single SQLite file.

    Each write runs in one transaction, so an entity row and its link rows
    are committed or rolled back together.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("database_url is required for SqlDbClient")
        self.engine = create_engine(
            database_url, future=True, **_engine_options(database_url)
        )
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _sqlite_pragmas)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageFault("could not initialize database schema") from exc
        self._ensure_singletons()

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        try:
            with self.Session.begin() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("Database operation failed")
            raise StorageFault("database operation failed") from exc

    def _ensure_singletons(self) -> None:
        with self._transaction() as session:
            now = now_ms()
            if session.get(AboutRow, ABOUT_ID) is None:
                session.add(
                    AboutRow(id=ABOUT_ID, content_en="", content_tr="", updated_at=now)
                )
            if session.get(LogoRow, LOGO_ID) is None:
                session.add(
                    LogoRow(id=LOGO_ID, img_path="", alt_en="", alt_tr="", updated_at=now)
                )

    @staticmethod
    def _next_seq(session: Session, row_class) -> int:
        current = session.execute(select(func.max(row_class.seq))).scalar_one()
        return (current or 0) + 1

    # Singletons

    def get_about(self) -> AboutRecord:
        with self._transaction() as session:
            return _about_from_row(session.get(AboutRow, ABOUT_ID))

    def update_about(self, changes: AboutChanges) -> AboutRecord:
        with self._transaction() as session:
            row = session.get(AboutRow, ABOUT_ID)
            content = Translations(row.content_en or "", row.content_tr or "").merged(
                changes.content
            )
            row.content_en, row.content_tr = content.en, content.tr
            row.updated_at = now_ms()
            return _about_from_row(row)

    def get_logo(self) -> LogoRecord:
        with self._transaction() as session:
            return _logo_from_row(session.get(LogoRow, LOGO_ID))

    def update_logo(self, changes: LogoChanges) -> LogoRecord:
        with self._transaction() as session:
            row = session.get(LogoRow, LOGO_ID)
            if changes.image_path is not None:
                row.img_path = changes.image_path
            alt = Translations(row.alt_en or "", row.alt_tr or "").merged(changes.alt)
            row.alt_en, row.alt_tr = alt.en, alt.tr
            row.updated_at = now_ms()
            return _logo_from_row(row)

    # Categories

    def list_categories(self) -> list[CategoryRecord]:
        with self._transaction() as session:
            rows = session.execute(
                select(CategoryRow).order_by(CategoryRow.seq.asc())
            ).scalars()
            return [_category_from_row(row) for row in rows]

    def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        with self._transaction() as session:
            row = session.get(CategoryRow, category_id)
            return _category_from_row(row) if row else None

    def create_category(self, changes: CategoryChanges) -> CategoryRecord:
        category_id = changes.id or new_id()
        with self._transaction() as session:
            if session.get(CategoryRow, category_id) is not None:
                raise DuplicateIdError("category", category_id)
            title = Translations().merged(changes.title)
            description = Translations().merged(changes.description)
            row = CategoryRow(
                id=category_id,
                title_en=title.en,
                title_tr=title.tr,
                description_en=description.en,
                description_tr=description.tr,
                position=int(changes.position or 0),
                is_active=True if changes.is_active is None else bool(changes.is_active),
                seq=self._next_seq(session, CategoryRow),
            )
            session.add(row)
            session.flush()
            return _category_from_row(row)

    def update_category(
        self, category_id: str, changes: CategoryChanges
    ) -> Optional[CategoryRecord]:
        with self._transaction() as session:
            row = session.get(CategoryRow, category_id)
            if not row:
                return None
            current = _category_from_row(row)
            title = current.title.merged(changes.title)
            description = current.description.merged(changes.description)
            row.title_en, row.title_tr = title.en, title.tr
            row.description_en, row.description_tr = description.en, description.tr
            if changes.position is not None:
                row.position = int(changes.position)
            if changes.is_active is not None:
                row.is_active = bool(changes.is_active)
            session.flush()
            return _category_from_row(row)

    def delete_category(self, category_id: str) -> None:
        with self._transaction() as session:
            IMAGE_CATEGORY_LINKS.discard(session, "category_id", category_id)
            session.execute(delete(CategoryRow).where(CategoryRow.id == category_id))

    # Images

    def _image_record(self, session: Session, row: "ImageRow") -> ImageRecord:
        return _image_from_row(
            row,
            category_ids=IMAGE_CATEGORY_LINKS.linked(session, "image_id", row.id),
            reference_ids=REFERENCE_IMAGE_LINKS.linked(session, "image_id", row.id),
        )

    def list_images(self) -> list[ImageRecord]:
        with self._transaction() as session:
            rows = session.execute(
                select(ImageRow).order_by(ImageRow.created_at.desc(), ImageRow.seq.desc())
            ).scalars().all()
            categories = IMAGE_CATEGORY_LINKS.grouped(session, "image_id")
            references = REFERENCE_IMAGE_LINKS.grouped(session, "image_id")
            return [
                _image_from_row(
                    row,
                    category_ids=categories.get(row.id, []),
                    reference_ids=references.get(row.id, []),
                )
                for row in rows
            ]

    def get_image(self, image_id: str) -> Optional[ImageRecord]:
        with self._transaction() as session:
            row = session.get(ImageRow, image_id)
            return self._image_record(session, row) if row else None

    def create_image(self, changes: ImageChanges) -> ImageRecord:
        image_id = changes.id or new_id()
        with self._transaction() as session:
            if session.get(ImageRow, image_id) is not None:
                raise DuplicateIdError("image", image_id)
            title = Translations().merged(changes.title)
            alt = Translations().merged(changes.alt)
            row = ImageRow(
                id=image_id,
                title_en=title.en,
                title_tr=title.tr,
                alt_en=alt.en,
                alt_tr=alt.tr,
                home=bool(changes.home),
                position=int(changes.position or 0),
                image_path=changes.image_path or "",
                created_at=now_ms() if changes.created_at is None else int(changes.created_at),
                seq=self._next_seq(session, ImageRow),
            )
            session.add(row)
            session.flush()
            IMAGE_CATEGORY_LINKS.replace(
                session, "image_id", image_id, changes.category_ids or []
            )
            REFERENCE_IMAGE_LINKS.replace(
                session, "image_id", image_id, changes.reference_ids or []
            )
            return self._image_record(session, row)

    def update_image(
        self, image_id: str, changes: ImageChanges
    ) -> Optional[ImageRecord]:
        with self._transaction() as session:
            row = session.get(ImageRow, image_id)
            if not row:
                return None
            title = Translations(row.title_en or "", row.title_tr or "").merged(
                changes.title
            )
            alt = Translations(row.alt_en or "", row.alt_tr or "").merged(changes.alt)
            row.title_en, row.title_tr = title.en, title.tr
            row.alt_en, row.alt_tr = alt.en, alt.tr
            if changes.home is not None:
                row.home = bool(changes.home)
            if changes.position is not None:
                row.position = int(changes.position)
            if changes.image_path is not None:
                row.image_path = changes.image_path
            session.flush()
            if changes.category_ids is not None:
                IMAGE_CATEGORY_LINKS.replace(
                    session, "image_id", image_id, changes.category_ids
                )
            if changes.reference_ids is not None:
                REFERENCE_IMAGE_LINKS.replace(
                    session, "image_id", image_id, changes.reference_ids
                )
            return self._image_record(session, row)

    def delete_image(self, image_id: str) -> None:
        with self._transaction() as session:
            REFERENCE_IMAGE_LINKS.discard(session, "image_id", image_id)
            IMAGE_CATEGORY_LINKS.discard(session, "image_id", image_id)
            session.execute(delete(ImageRow).where(ImageRow.id == image_id))

    # References

    def _reference_record(
        self, session: Session, row: "ReferenceRow"
    ) -> ReferenceRecord:
        return _reference_from_row(
            row,
            image_ids=REFERENCE_IMAGE_LINKS.linked(session, "reference_id", row.id),
        )

    def list_references(self) -> list[ReferenceRecord]:
        with self._transaction() as session:
            rows = session.execute(
                select(ReferenceRow).order_by(ReferenceRow.seq.asc())
            ).scalars().all()
            images = REFERENCE_IMAGE_LINKS.grouped(session, "reference_id")
            return [
                _reference_from_row(row, image_ids=images.get(row.id, []))
                for row in rows
            ]

    def get_reference(self, reference_id: str) -> Optional[ReferenceRecord]:
        with self._transaction() as session:
            row = session.get(ReferenceRow, reference_id)
            return self._reference_record(session, row) if row else None

    def create_reference(self, changes: ReferenceChanges) -> ReferenceRecord:
        reference_id = changes.id or new_id()
        with self._transaction() as session:
            if session.get(ReferenceRow, reference_id) is not None:
                raise DuplicateIdError("reference", reference_id)
            title = Translations().merged(changes.title)
            description = Translations().merged(changes.description)
            row = ReferenceRow(
                id=reference_id,
                title_en=title.en,
                title_tr=title.tr,
                description_en=description.en,
                description_tr=description.tr,
                year=changes.year or "",
                logo_light_path=changes.logo_light_path or "",
                logo_dark_path=changes.logo_dark_path or "",
                seq=self._next_seq(session, ReferenceRow),
            )
            session.add(row)
            session.flush()
            REFERENCE_IMAGE_LINKS.replace(
                session, "reference_id", reference_id, changes.image_ids or []
            )
            return self._reference_record(session, row)

    def update_reference(
        self, reference_id: str, changes: ReferenceChanges
    ) -> Optional[ReferenceRecord]:
        with self._transaction() as session:
            row = session.get(ReferenceRow, reference_id)
            if not row:
                return None
            title = Translations(row.title_en or "", row.title_tr or "").merged(
                changes.title
            )
            description = Translations(
                row.description_en or "", row.description_tr or ""
            ).merged(changes.description)
            row.title_en, row.title_tr = title.en, title.tr
            row.description_en, row.description_tr = description.en, description.tr
            if changes.year is not None:
                row.year = changes.year
            if changes.logo_light_path is not None:
                row.logo_light_path = changes.logo_light_path
            if changes.logo_dark_path is not None:
                row.logo_dark_path = changes.logo_dark_path
            session.flush()
            if changes.image_ids is not None:
                REFERENCE_IMAGE_LINKS.replace(
                    session, "reference_id", reference_id, changes.image_ids
                )
            return self._reference_record(session, row)

    def delete_reference(self, reference_id: str) -> None:
        with self._transaction() as session:
            REFERENCE_IMAGE_LINKS.discard(session, "reference_id", reference_id)
            session.execute(delete(ReferenceRow).where(ReferenceRow.id == reference_id))


def _sqlite_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
    finally:
        cursor.close()


def _about_from_row(row: "AboutRow") -> AboutRecord:
    return AboutRecord(
        content=Translations(row.content_en or "", row.content_tr or ""),
        updated_at=row.updated_at or 0,
    )


def _logo_from_row(row: "LogoRow") -> LogoRecord:
    return LogoRecord(
        image_path=row.img_path or "",
        alt=Translations(row.alt_en or "", row.alt_tr or ""),
        updated_at=row.updated_at or 0,
    )


def _category_from_row(row: "CategoryRow") -> CategoryRecord:
    return CategoryRecord(
        id=row.id,
        title=Translations(row.title_en or "", row.title_tr or ""),
        description=Translations(row.description_en or "", row.description_tr or ""),
        position=row.position or 0,
        is_active=bool(row.is_active),
    )


def _image_from_row(
    row: "ImageRow", category_ids: list[str], reference_ids: list[str]
) -> ImageRecord:
    return ImageRecord(
        id=row.id,
        title=Translations(row.title_en or "", row.title_tr or ""),
        alt=Translations(row.alt_en or "", row.alt_tr or ""),
        home=bool(row.home),
        position=row.position or 0,
        image_path=row.image_path or "",
        created_at=row.created_at or 0,
        category_ids=list(category_ids),
        reference_ids=list(reference_ids),
    )


def _reference_from_row(row: "ReferenceRow", image_ids: list[str]) -> ReferenceRecord:
    return ReferenceRecord(
        id=row.id,
        title=Translations(row.title_en or "", row.title_tr or ""),
        description=Translations(row.description_en or "", row.description_tr or ""),
        year=row.year or "",
        logo_light_path=row.logo_light_path or "",
        logo_dark_path=row.logo_dark_path or "",
        image_ids=list(image_ids),
    )


Base = declarative_base()


class AboutRow(Base):
    __tablename__ = "about"

    id = Column(String, primary_key=True, default=ABOUT_ID)
    content_en = Column(Text, nullable=False, default="")
    content_tr = Column(Text, nullable=False, default="")
    updated_at = Column(BigInteger, nullable=False)


class LogoRow(Base):
    __tablename__ = "logo"

    id = Column(String, primary_key=True, default=LOGO_ID)
    img_path = Column(String, nullable=False, default="")
    alt_en = Column(String, nullable=False, default="")
    alt_tr = Column(String, nullable=False, default="")
    updated_at = Column(BigInteger, nullable=False)


class CategoryRow(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    title_en = Column(String, nullable=False, default="")
    title_tr = Column(String, nullable=False, default="")
    description_en = Column(Text, nullable=False, default="")
    description_tr = Column(Text, nullable=False, default="")
    position = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    seq = Column(Integer, nullable=False, index=True)


class ImageRow(Base):
    __tablename__ = "images"

    id = Column(String, primary_key=True)
    title_en = Column(String, nullable=False, default="")
    title_tr = Column(String, nullable=False, default="")
    alt_en = Column(String, nullable=False, default="")
    alt_tr = Column(String, nullable=False, default="")
    home = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)
    image_path = Column(String, nullable=False, default="")
    created_at = Column(BigInteger, nullable=False, index=True)
    seq = Column(Integer, nullable=False, index=True)


class ReferenceRow(Base):
    __tablename__ = "reference_items"

    id = Column(String, primary_key=True)
    title_en = Column(String, nullable=False, default="")
    title_tr = Column(String, nullable=False, default="")
    description_en = Column(Text, nullable=False, default="")
    description_tr = Column(Text, nullable=False, default="")
    year = Column(String, nullable=False, default="")
    logo_light_path = Column(String, nullable=False, default="")
    logo_dark_path = Column(String, nullable=False, default="")
    seq = Column(Integer, nullable=False, index=True)


# Link tables carry no key of their own and are not unique per pair.
image_categories = Table(
    "image_categories",
    Base.metadata,
    Column("image_id", String, nullable=False, index=True),
    Column("category_id", String, nullable=False, index=True),
)

reference_images = Table(
    "reference_images",
    Base.metadata,
    Column("reference_id", String, nullable=False, index=True),
    Column("image_id", String, nullable=False, index=True),
)

IMAGE_CATEGORY_LINKS = SqlLinkTable(image_categories)
REFERENCE_IMAGE_LINKS = SqlLinkTable(reference_images)
