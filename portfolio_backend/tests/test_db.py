import os
import tempfile
import unittest
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from portfolio_backend import db as db_module
from portfolio_backend.db import (
    AboutChanges,
    CategoryChanges,
    ImageChanges,
    InMemoryDbClient,
    LogoChanges,
    ReferenceChanges,
    SqlDbClient,
)
from portfolio_backend.errors import DuplicateIdError, StorageFault


class StoreContract:
    """Behaviour shared by every DbClient implementation."""

    def make_db(self):
        raise NotImplementedError

    def setUp(self):
        self.db = self.make_db()

    def test_singletons_exist_with_empty_strings(self):
        about = self.db.get_about()
        self.assertEqual(about.content.as_dict(), {"en": "", "tr": ""})
        logo = self.db.get_logo()
        self.assertEqual(logo.image_path, "")
        self.assertEqual(logo.alt.as_dict(), {"en": "", "tr": ""})

    def test_update_about_keeps_omitted_language(self):
        self.db.update_about(AboutChanges(content={"en": "Hello", "tr": "Merhaba"}))
        before = self.db.get_about().updated_at
        about = self.db.update_about(AboutChanges(content={"en": "Hi"}))
        self.assertEqual(about.content.en, "Hi")
        self.assertEqual(about.content.tr, "Merhaba")
        self.assertGreaterEqual(about.updated_at, before)

    def test_update_logo_partial(self):
        self.db.update_logo(LogoChanges(image_path="/uploads/a.png", alt={"en": "Logo"}))
        logo = self.db.update_logo(LogoChanges(alt={"tr": "Logo TR"}))
        self.assertEqual(logo.image_path, "/uploads/a.png")
        self.assertEqual(logo.alt.as_dict(), {"en": "Logo", "tr": "Logo TR"})

    def test_create_category_defaults(self):
        cat = self.db.create_category(CategoryChanges())
        self.assertTrue(cat.id)
        self.assertEqual(cat.title.as_dict(), {"en": "", "tr": ""})
        self.assertEqual(cat.description.as_dict(), {"en": "", "tr": ""})
        self.assertEqual(cat.position, 0)
        self.assertTrue(cat.is_active)

    def test_generated_ids_are_unique(self):
        ids = {self.db.create_category(CategoryChanges()).id for _ in range(5)}
        self.assertEqual(len(ids), 5)

    def test_create_with_taken_id_fails(self):
        self.db.create_category(CategoryChanges(id="c1"))
        with self.assertRaises(DuplicateIdError):
            self.db.create_category(CategoryChanges(id="c1"))

    def test_update_category_explicit_falsy_values_override(self):
        self.db.create_category(
            CategoryChanges(id="c1", title={"en": "Old"}, position=4, is_active=True)
        )
        cat = self.db.update_category(
            "c1", CategoryChanges(position=0, is_active=False, title={"en": ""})
        )
        self.assertEqual(cat.position, 0)
        self.assertFalse(cat.is_active)
        self.assertEqual(cat.title.en, "")

    def test_update_category_omitted_fields_untouched(self):
        self.db.create_category(
            CategoryChanges(
                id="c1", title={"en": "Arch", "tr": "Mimari"}, position=3, is_active=False
            )
        )
        cat = self.db.update_category("c1", CategoryChanges(description={"en": "d"}))
        self.assertEqual(cat.title.as_dict(), {"en": "Arch", "tr": "Mimari"})
        self.assertEqual(cat.position, 3)
        self.assertFalse(cat.is_active)
        self.assertEqual(cat.description.as_dict(), {"en": "d", "tr": ""})

    def test_update_unknown_ids_return_none(self):
        self.assertIsNone(self.db.update_category("nope", CategoryChanges(position=1)))
        self.assertIsNone(self.db.update_image("nope", ImageChanges(position=1)))
        self.assertIsNone(self.db.update_reference("nope", ReferenceChanges(year="1")))

    def test_get_unknown_ids_return_none(self):
        self.assertIsNone(self.db.get_category("nope"))
        self.assertIsNone(self.db.get_image("nope"))
        self.assertIsNone(self.db.get_reference("nope"))

    def test_image_category_ids_roundtrip_as_set(self):
        image = self.db.create_image(ImageChanges(id="i1", category_ids=["c2", "c1"]))
        self.assertEqual(set(image.category_ids), {"c1", "c2"})
        self.assertEqual(set(self.db.get_image("i1").category_ids), {"c1", "c2"})

    def test_update_image_replaces_category_set(self):
        self.db.create_image(ImageChanges(id="i1", category_ids=["c1", "c2"]))
        image = self.db.update_image("i1", ImageChanges(category_ids=["c3"]))
        self.assertEqual(image.category_ids, ["c3"])

    def test_update_image_without_links_leaves_them(self):
        self.db.create_image(
            ImageChanges(id="i1", category_ids=["c1"], reference_ids=["r1"])
        )
        image = self.db.update_image("i1", ImageChanges(title={"en": "New"}))
        self.assertEqual(image.category_ids, ["c1"])
        self.assertEqual(image.reference_ids, ["r1"])

    def test_update_image_with_empty_set_clears_links(self):
        self.db.create_image(ImageChanges(id="i1", category_ids=["c1"]))
        image = self.db.update_image("i1", ImageChanges(category_ids=[]))
        self.assertEqual(image.category_ids, [])

    def test_create_image_without_links_has_empty_sets(self):
        image = self.db.create_image(ImageChanges(id="i1"))
        self.assertEqual(image.category_ids, [])
        self.assertEqual(image.reference_ids, [])
        self.assertFalse(image.home)
        self.assertEqual(image.image_path, "")

    def test_duplicate_link_ids_collapse(self):
        image = self.db.create_image(ImageChanges(id="i1", category_ids=["c1", "c1", ""]))
        self.assertEqual(image.category_ids, ["c1"])

    def test_update_image_position_zero_is_applied(self):
        self.db.create_image(ImageChanges(id="i1", position=5, home=True))
        image = self.db.update_image("i1", ImageChanges(position=0, home=False))
        self.assertEqual(image.position, 0)
        self.assertFalse(image.home)

    def test_update_image_does_not_touch_created_at(self):
        self.db.create_image(ImageChanges(id="i1", created_at=1234))
        image = self.db.update_image("i1", ImageChanges(created_at=9999, position=2))
        self.assertEqual(image.created_at, 1234)

    def test_delete_category_removes_links_only(self):
        self.db.create_category(CategoryChanges(id="c1"))
        self.db.create_category(CategoryChanges(id="c2"))
        self.db.create_image(ImageChanges(id="i1", category_ids=["c1", "c2"]))
        self.db.delete_category("c1")
        image = self.db.get_image("i1")
        self.assertIsNotNone(image)
        self.assertNotIn("c1", image.category_ids)
        self.assertEqual(image.category_ids, ["c2"])
        self.assertIsNone(self.db.get_category("c1"))

    def test_delete_image_removes_both_link_tables(self):
        self.db.create_reference(ReferenceChanges(id="r1", image_ids=["i1", "i2"]))
        self.db.create_image(ImageChanges(id="i1", category_ids=["c1"]))
        self.db.delete_image("i1")
        self.assertIsNone(self.db.get_image("i1"))
        self.assertEqual(self.db.get_reference("r1").image_ids, ["i2"])
        # Re-creating the id must not resurrect old links.
        image = self.db.create_image(ImageChanges(id="i1"))
        self.assertEqual(image.category_ids, [])
        self.assertEqual(image.reference_ids, [])

    def test_delete_reference_removes_links(self):
        self.db.create_image(ImageChanges(id="i1"))
        self.db.create_reference(ReferenceChanges(id="r1", image_ids=["i1"]))
        self.assertEqual(self.db.get_image("i1").reference_ids, ["r1"])
        self.db.delete_reference("r1")
        self.assertEqual(self.db.get_image("i1").reference_ids, [])

    def test_delete_is_idempotent(self):
        self.db.delete_category("missing")
        self.db.delete_image("missing")
        self.db.delete_reference("missing")
        self.db.create_category(CategoryChanges(id="c1"))
        self.db.delete_category("c1")
        self.db.delete_category("c1")
        self.assertEqual(self.db.list_categories(), [])

    def test_reference_image_ids_roundtrip(self):
        ref = self.db.create_reference(ReferenceChanges(id="r1", image_ids=["i2", "i1"]))
        self.assertEqual(set(ref.image_ids), {"i1", "i2"})
        self.assertEqual(set(self.db.get_reference("r1").image_ids), {"i1", "i2"})

    def test_reference_links_visible_from_image_side(self):
        self.db.create_image(ImageChanges(id="i1", reference_ids=["r1"]))
        self.db.create_reference(ReferenceChanges(id="r2", image_ids=["i1"]))
        self.assertEqual(self.db.get_image("i1").reference_ids, ["r1", "r2"])

    def test_update_reference_partial(self):
        self.db.create_reference(
            ReferenceChanges(
                id="r1",
                title={"en": "Brand", "tr": "Marka"},
                year="2020",
                logo_light_path="/uploads/l.png",
                image_ids=["i1"],
            )
        )
        ref = self.db.update_reference(
            "r1", ReferenceChanges(year="", logo_dark_path="https://x.test/d.png")
        )
        self.assertEqual(ref.year, "")
        self.assertEqual(ref.logo_light_path, "/uploads/l.png")
        self.assertEqual(ref.logo_dark_path, "https://x.test/d.png")
        self.assertEqual(ref.title.as_dict(), {"en": "Brand", "tr": "Marka"})
        self.assertEqual(ref.image_ids, ["i1"])

    def test_list_images_newest_first(self):
        self.db.create_image(ImageChanges(id="old", created_at=1000))
        self.db.create_image(ImageChanges(id="new", created_at=3000))
        self.db.create_image(ImageChanges(id="mid", created_at=2000))
        self.assertEqual([img.id for img in self.db.list_images()], ["new", "mid", "old"])

    def test_list_images_ties_put_latest_insert_first(self):
        self.db.create_image(ImageChanges(id="a", created_at=1000))
        self.db.create_image(ImageChanges(id="b", created_at=1000))
        self.assertEqual([img.id for img in self.db.list_images()], ["b", "a"])

    def test_list_images_carries_links(self):
        self.db.create_image(ImageChanges(id="i1", category_ids=["c1"]))
        self.db.create_reference(ReferenceChanges(id="r1", image_ids=["i1"]))
        (image,) = self.db.list_images()
        self.assertEqual(image.category_ids, ["c1"])
        self.assertEqual(image.reference_ids, ["r1"])

    def test_list_references_carries_links(self):
        self.db.create_reference(ReferenceChanges(id="r1", image_ids=["i1", "i2"]))
        self.db.create_reference(ReferenceChanges(id="r2"))
        refs = {ref.id: ref for ref in self.db.list_references()}
        self.assertEqual(refs["r1"].image_ids, ["i1", "i2"])
        self.assertEqual(refs["r2"].image_ids, [])


class InMemoryDbClientTests(StoreContract, unittest.TestCase):
    def make_db(self):
        return InMemoryDbClient()

    def test_returned_records_are_copies(self):
        self.db.create_image(ImageChanges(id="i1", category_ids=["c1"]))
        image = self.db.get_image("i1")
        image.category_ids.append("c9")
        image.position = 42
        stored = self.db.get_image("i1")
        self.assertEqual(stored.category_ids, ["c1"])
        self.assertEqual(stored.position, 0)

    def test_link_failure_after_row_write_leaves_row(self):
        # Without a transaction the entity row is written before its links, so
        # a failure while replacing links leaves the row behind.
        with patch.object(
            self.db.image_categories, "replace", side_effect=RuntimeError("boom")
        ):
            with self.assertRaises(RuntimeError):
                self.db.create_image(ImageChanges(id="i1", category_ids=["c1"]))
        self.assertIn("i1", self.db.images)

    def test_reset(self):
        self.db.create_category(CategoryChanges(id="c1"))
        self.db.reset()
        self.assertEqual(self.db.list_categories(), [])


class SqlDbClientTests(StoreContract, unittest.TestCase):
    """
    Uses in-memory SQLite via SQLAlchemy URL.
    """

    def make_db(self):
        return SqlDbClient("sqlite+pysqlite:///:memory:")

    def test_link_failure_rolls_back_entity_row(self):
        failure = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with patch.object(db_module.IMAGE_CATEGORY_LINKS, "replace", side_effect=failure):
            with self.assertRaises(StorageFault):
                self.db.create_image(ImageChanges(id="i1", category_ids=["c1"]))
        self.assertIsNone(self.db.get_image("i1"))

    def test_update_link_failure_keeps_previous_state(self):
        self.db.create_image(ImageChanges(id="i1", position=1, category_ids=["c1"]))
        failure = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with patch.object(db_module.IMAGE_CATEGORY_LINKS, "replace", side_effect=failure):
            with self.assertRaises(StorageFault):
                self.db.update_image("i1", ImageChanges(position=9, category_ids=["c2"]))
        image = self.db.get_image("i1")
        self.assertEqual(image.position, 1)
        self.assertEqual(image.category_ids, ["c1"])

    def test_duplicate_link_rows_read_as_set(self):
        with self.db.Session.begin() as session:
            session.execute(
                db_module.image_categories.insert(),
                [
                    {"image_id": "i1", "category_id": "c1"},
                    {"image_id": "i1", "category_id": "c1"},
                ],
            )
        self.db.create_image(ImageChanges(id="i1"))
        # create_image replaced the stray rows with an empty set.
        self.assertEqual(self.db.get_image("i1").category_ids, [])
        with self.db.Session.begin() as session:
            session.execute(
                db_module.image_categories.insert(),
                [
                    {"image_id": "i1", "category_id": "c1"},
                    {"image_id": "i1", "category_id": "c1"},
                ],
            )
        self.assertEqual(self.db.get_image("i1").category_ids, ["c1"])

    def test_file_database_persists_between_clients(self):
        with tempfile.TemporaryDirectory() as tmp:
            url = f"sqlite:///{os.path.join(tmp, 'nested', 'data.db')}"
            first = SqlDbClient(url)
            first.create_category(CategoryChanges(id="c1", title={"en": "Arch"}))
            first.update_about(AboutChanges(content={"en": "Hello"}))
            first.engine.dispose()

            second = SqlDbClient(url)
            self.assertEqual(second.get_category("c1").title.en, "Arch")
            self.assertEqual(second.get_about().content.en, "Hello")
            second.engine.dispose()

    def test_requires_database_url(self):
        with self.assertRaises(ValueError):
            SqlDbClient("")


if __name__ == "__main__":
    unittest.main()
