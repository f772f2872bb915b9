"""Category/subcategory CRUD, status toggles, uploads, and writer isolation."""

from __future__ import annotations

import shutil
import tempfile
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError, IntegrityError
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from access_control.models import Role
from articles.models import Article, ArticleStatus
from catalog.models import CatalogStatus, Category, Subcategory
from tests.utils import FakeRedisMixin, auth_client, create_user, seed_writersphere_basics

MEDIA_ROOT = tempfile.mkdtemp()


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class CatalogTests(FakeRedisMixin, TestCase):
    """Writers manage only their own categories and subcategories."""

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    @classmethod
    def setUpTestData(cls):
        cls.roles, _ = seed_writersphere_basics()
        cls.writer = create_user("writer@test.com", "WriterPass1", cls.roles[Role.WRITER])
        cls.other = create_user("other@test.com", "OtherPass1", cls.roles[Role.WRITER])
        cls.reader = create_user("reader@test.com", "ReaderPass1", cls.roles[Role.READER])

        cls.tech = Category.objects.create(writer=cls.writer, name="Tech", description="Gadgets")
        cls.food = Category.objects.create(writer=cls.writer, name="Food")
        cls.foreign = Category.objects.create(writer=cls.other, name="Not yours")
        cls.phones = Subcategory.objects.create(writer=cls.writer, category=cls.tech, name="Phones")

    def setUp(self):
        self.client_writer = auth_client(self.writer)

    def test_anonymous_is_401(self):
        response = APIClient().get("/categories/")
        self.assertEqual(response.status_code, 401)
        self.assertIsNone(response.json()["data"])

    def test_reader_is_403(self):
        response = auth_client(self.reader).get("/categories/")
        self.assertEqual(response.status_code, 403)

    def test_list_only_own_categories_newest_first(self):
        body = self.client_writer.get("/categories/").json()
        names = [row["name"] for row in body["data"]]
        self.assertEqual(names, ["Food", "Tech"])

    def test_search_categories(self):
        body = self.client_writer.get("/categories/", {"q": "gadg"}).json()
        self.assertEqual([row["name"] for row in body["data"]], ["Tech"])

    def test_create_category_trims_name(self):
        response = self.client_writer.post(
            "/categories/", {"name": "  Travel  ", "description": "Trips"}, format="json"
        )
        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["name"], "Travel")
        self.assertEqual(data["status"], CatalogStatus.ACTIVE)
        self.assertTrue(Category.objects.filter(pk=data["id"], writer=self.writer).exists())

    def test_create_category_requires_name(self):
        response = self.client_writer.post("/categories/", {"name": "   "}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("name: Name is required.", response.json()["errors"])

    def test_create_subcategory_requires_name(self):
        response = self.client_writer.post(
            "/subcategories/", {"name": " ", "category": self.tech.pk}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("name: Name is required.", response.json()["errors"])

    def test_subcategory_category_filter_must_be_an_id(self):
        response = self.client_writer.get("/subcategories/", {"category": "abc"})
        self.assertEqual(response.status_code, 400)
        self.assertIsNone(response.json()["data"])
        self.assertTrue(response.json()["errors"][0].startswith("category: "))

        body = self.client_writer.get("/subcategories/", {"category": self.tech.pk}).json()
        self.assertEqual([row["name"] for row in body["data"]], ["Phones"])

    def test_subcategory_status_toggle(self):
        response = self.client_writer.post(
            f"/subcategories/{self.phones.pk}/status/", {"status": "inactive"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["previous_status"], CatalogStatus.ACTIVE)
        self.assertEqual(data["status"], CatalogStatus.INACTIVE)

        response = self.client_writer.post(f"/subcategories/{self.phones.pk}/status/")
        self.assertEqual(response.json()["data"]["status"], CatalogStatus.ACTIVE)

        response = self.client_writer.post(
            f"/subcategories/{self.phones.pk}/status/", {"status": "hidden"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.phones.refresh_from_db()
        self.assertEqual(self.phones.status, CatalogStatus.ACTIVE)

    def test_failed_status_update_shows_database_message(self):
        message = "new row violates row-level security policy"
        with mock.patch.object(Category, "save", side_effect=DatabaseError(message)):
            response = self.client_writer.post(f"/categories/{self.tech.pk}/status/")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json(), {"data": None, "errors": [message]})

        with mock.patch.object(Category, "save", side_effect=IntegrityError("duplicate key value")):
            response = self.client_writer.post(f"/categories/{self.tech.pk}/status/")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"], ["duplicate key value"])

        self.tech.refresh_from_db()
        self.assertEqual(self.tech.status, CatalogStatus.ACTIVE)

    def test_foreign_category_is_404(self):
        response = self.client_writer.get(f"/categories/{self.foreign.pk}/")
        self.assertEqual(response.status_code, 404)

        response = self.client_writer.patch(
            f"/categories/{self.foreign.pk}/", {"name": "Mine now"}, format="json"
        )
        self.assertEqual(response.status_code, 404)
        self.foreign.refresh_from_db()
        self.assertEqual(self.foreign.name, "Not yours")

    def test_status_toggle_flips_and_reports_previous(self):
        response = self.client_writer.post(f"/categories/{self.tech.pk}/status/")
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["previous_status"], CatalogStatus.ACTIVE)
        self.assertEqual(data["status"], CatalogStatus.INACTIVE)

        response = self.client_writer.post(
            f"/categories/{self.tech.pk}/status/", {"status": "active"}, format="json"
        )
        self.assertEqual(response.json()["data"]["status"], CatalogStatus.ACTIVE)

    def test_status_toggle_on_foreign_category_is_404(self):
        response = self.client_writer.post(f"/categories/{self.foreign.pk}/status/")
        self.assertEqual(response.status_code, 404)
        self.foreign.refresh_from_db()
        self.assertEqual(self.foreign.status, CatalogStatus.ACTIVE)

    def test_delete_category_cascades_subcategories(self):
        response = self.client_writer.delete(f"/categories/{self.tech.pk}/")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Subcategory.objects.filter(pk=self.phones.pk).exists())

    def test_category_subcategories_view(self):
        Subcategory.objects.create(writer=self.writer, category=self.food, name="Baking")
        body = self.client_writer.get(f"/categories/{self.tech.pk}/subcategories/").json()
        self.assertEqual([row["name"] for row in body["data"]], ["Phones"])

    def test_create_subcategory_with_category_name(self):
        response = self.client_writer.post(
            "/subcategories/", {"name": "Laptops", "category": self.tech.pk}, format="json"
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["category_name"], "Tech")

    def test_subcategory_rejects_foreign_category(self):
        response = self.client_writer.post(
            "/subcategories/", {"name": "Sneaky", "category": self.foreign.pk}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Subcategory.objects.filter(name="Sneaky").exists())

    def test_subcategory_search_matches_category_name(self):
        Subcategory.objects.create(writer=self.writer, category=self.food, name="Baking")
        body = self.client_writer.get("/subcategories/", {"q": "tech"}).json()
        self.assertEqual([row["name"] for row in body["data"]], ["Phones"])

        body = self.client_writer.get("/subcategories/", {"category": self.food.pk}).json()
        self.assertEqual([row["name"] for row in body["data"]], ["Baking"])

    def test_upload_image_returns_public_url(self):
        upload = SimpleUploadedFile("cover photo.png", b"\x89PNG\r\n", content_type="image/png")
        response = self.client_writer.post("/categories/images/", {"file": upload}, format="multipart")

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertTrue(data["key"].startswith("category-images/"))
        self.assertTrue(data["key"].endswith("cover_photo.png"))
        self.assertTrue(data["image_url"].startswith("http://testserver/"))

    def test_upload_subcategory_image(self):
        upload = SimpleUploadedFile("shelf.jpg", b"\xff\xd8\xff", content_type="image/jpeg")
        response = self.client_writer.post(
            "/subcategories/images/", {"file": upload}, format="multipart"
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertTrue(data["key"].startswith("subcategory-images/"))
        self.assertTrue(data["image_url"].endswith("shelf.jpg"))

    def test_upload_rejects_non_images(self):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        response = self.client_writer.post(
            "/subcategories/images/", {"file": upload}, format="multipart"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("file: Only image uploads are allowed.", response.json()["errors"])

    def test_dashboard_counts(self):
        Article.objects.create(writer=self.writer, title="One")
        Article.objects.create(writer=self.writer, title="Gone", status=ArticleStatus.DELETED)
        Article.objects.create(writer=self.other, title="Theirs")

        body = self.client_writer.get("/dashboard/").json()
        self.assertEqual(
            body["data"],
            {"email": "writer@test.com", "categories": 2, "subcategories": 1, "articles": 1},
        )
