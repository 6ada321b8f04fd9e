import unittest

from portfolio_backend.db import (
    AboutRecord,
    CategoryRecord,
    ImageRecord,
    LogoRecord,
    ReferenceRecord,
    Translations,
)
from portfolio_backend.projection import (
    project_about,
    project_category,
    project_image,
    project_logo,
    project_reference,
)

BASE = "https://api.example"


def _category(cat_id, en, tr="", position=0):
    return CategoryRecord(
        id=cat_id, title=Translations(en=en, tr=tr), position=position
    )


class ProjectionTests(unittest.TestCase):
    def setUp(self):
        self.categories = [_category("c1", "architecture", "mimari", 1)]
        self.references = [
            ReferenceRecord(
                id="r1",
                title=Translations(en="Brand", tr="Marka"),
                year="2024",
                logo_light_path="/uploads/light.png",
                image_ids=["i1", "i2"],
            )
        ]
        self.images = [
            ImageRecord(
                id="i1",
                title=Translations(en="Sunlit", tr="Güneşli"),
                image_path="/uploads/one.png",
                created_at=2,
                category_ids=["c1", "ghost"],
                reference_ids=["r1", "missing-ref"],
            ),
            ImageRecord(
                id="i2",
                title=Translations(en="Portrait"),
                image_path="https://cdn.example/two.png",
                created_at=1,
                reference_ids=["r1"],
            ),
        ]

    def test_project_category(self):
        projected = project_category(self.categories[0], "tr")
        self.assertEqual(
            projected,
            {
                "id": "c1",
                "title": "mimari",
                "description": "",
                "position": 1,
                "isActive": True,
                "translations": {
                    "title": {"en": "architecture", "tr": "mimari"},
                    "description": {"en": "", "tr": ""},
                },
            },
        )

    def test_project_image_drops_dangling_links(self):
        projected = project_image(
            self.images[0], "en", self.categories, self.references, BASE
        )
        self.assertEqual([c["id"] for c in projected["categories"]], ["c1"])
        self.assertEqual([r["id"] for r in projected["references"]], ["r1"])

    def test_project_image_references_are_not_reexpanded(self):
        projected = project_image(
            self.images[0], "en", self.categories, self.references, BASE
        )
        (reference,) = projected["references"]
        self.assertEqual(
            reference["images"],
            [{"id": "i1", "documentId": "i1"}, {"id": "i2", "documentId": "i2"}],
        )

    def test_project_image_localizes_and_resolves_media(self):
        projected = project_image(
            self.images[1], "tr", self.categories, self.references, BASE
        )
        self.assertEqual(projected["Title"], "Portrait")
        self.assertNotIn("title", projected)
        self.assertEqual(projected["alt"], "")
        self.assertEqual(projected["image"]["url"], "https://cdn.example/two.png")
        self.assertEqual(projected["translations"]["title"], {"en": "Portrait", "tr": ""})
        self.assertEqual(projected["documentId"], "i2")

    def test_project_image_without_path_has_null_image(self):
        image = ImageRecord(id="i3")
        projected = project_image(image, "en", [], [], BASE)
        self.assertIsNone(projected["image"])
        self.assertEqual(projected["categories"], [])
        self.assertEqual(projected["references"], [])

    def test_nested_reference_has_image_stubs(self):
        projected = project_reference(self.references[0], "tr", BASE, nested=True)
        self.assertEqual(projected["title"], "Marka")
        self.assertEqual(
            projected["images"],
            [{"id": "i1", "documentId": "i1"}, {"id": "i2", "documentId": "i2"}],
        )
        self.assertEqual(
            projected["logo_light"]["url"], "https://api.example/uploads/light.png"
        )
        self.assertIsNone(projected["logo_dark"])

    def test_full_reference_expands_images_one_level(self):
        projected = project_reference(
            self.references[0],
            "en",
            BASE,
            nested=False,
            images=self.images,
            categories=self.categories,
        )
        self.assertEqual([img["id"] for img in projected["images"]], ["i1", "i2"])
        # i1 also links "missing-ref"; only the parent reference is listed.
        for image in projected["images"]:
            self.assertEqual(image["references"], [{"id": "r1", "documentId": "r1"}])
        self.assertEqual(
            [c["id"] for c in projected["images"][0]["categories"]], ["c1"]
        )

    def test_nested_image_lists_only_its_parent_reference(self):
        other = ReferenceRecord(id="r2", image_ids=["i9"])
        shared = ImageRecord(id="i9", reference_ids=["r1", "r2", "ghost"])
        projected = project_reference(other, "en", BASE, nested=False, images=[shared])
        (image,) = projected["images"]
        self.assertEqual(image["references"], [{"id": "r2", "documentId": "r2"}])

    def test_full_reference_skips_unknown_images(self):
        projected = project_reference(
            self.references[0], "en", BASE, nested=False, images=self.images[:1]
        )
        self.assertEqual([img["id"] for img in projected["images"]], ["i1"])

    def test_project_about_and_logo(self):
        about = AboutRecord(content=Translations(en="Hello", tr=""), updated_at=5)
        self.assertEqual(
            project_about(about, "tr"),
            {
                "About_text": "Hello",
                "translations": {"en": "Hello", "tr": ""},
                "updatedAt": 5,
            },
        )
        logo = LogoRecord(image_path="", alt=Translations(tr="Logo"), updated_at=5)
        projected = project_logo(logo, "en", BASE)
        self.assertEqual(projected["id"], "logo")
        self.assertIsNone(projected["img"])
        self.assertEqual(projected["alt"], "Logo")


if __name__ == "__main__":
    unittest.main()
