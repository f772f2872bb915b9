"""Access rule matrix: own/all flags across writer, reader, and unseeded roles."""

from __future__ import annotations

from django.core.checks import run_checks
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from access_control.models import AccessRule, BusinessElement, Role
from articles.models import Article
from authentication.services import TokenService
from catalog.models import Category
from tests.utils import FakeRedisMixin, auth_client, create_user, seed_writersphere_basics


class AccessRuleTests(FakeRedisMixin, TestCase):
    """Rows are scoped to their writer unless a rule grants ``all``."""

    @classmethod
    def setUpTestData(cls):
        cls.roles, cls.elements = seed_writersphere_basics()
        cls.alice = create_user("alice@test.com", "AlicePass1", cls.roles[Role.WRITER])
        cls.bob = create_user("bob@test.com", "BobPass123", cls.roles[Role.WRITER])
        cls.reader = create_user("reader@test.com", "ReaderPass1", cls.roles[Role.READER])

        cls.alice_articles = [
            Article.objects.create(writer=cls.alice, title="Alice 1"),
            Article.objects.create(writer=cls.alice, title="Alice 2"),
        ]
        cls.bob_article = Article.objects.create(writer=cls.bob, title="Bob 1")
        cls.bob_category = Category.objects.create(writer=cls.bob, name="Bob's")

    def test_seed_is_idempotent(self):
        roles, elements = seed_writersphere_basics()
        self.assertEqual(set(roles), {Role.WRITER, Role.READER})
        self.assertEqual(set(elements), {"category", "subcategory", "article", "tag"})
        self.assertEqual(AccessRule.objects.filter(role=roles[Role.WRITER]).count(), 4)
        self.assertFalse(AccessRule.objects.filter(role=roles[Role.READER]).exists())

    def test_writer_sees_only_own_rows(self):
        client = auth_client(self.alice)
        rows = client.get("/articles/").json()["data"]
        self.assertEqual({row["title"] for row in rows}, {"Alice 1", "Alice 2"})

        self.assertEqual(client.get(f"/articles/{self.bob_article.pk}/").status_code, 404)
        self.assertEqual(client.get(f"/categories/{self.bob_category.pk}/").status_code, 404)

    def test_reader_is_forbidden_on_every_writer_resource(self):
        client = auth_client(self.reader)
        for path in ("/articles/", "/categories/", "/subcategories/", "/tags/", "/dashboard/"):
            with self.subTest(path=path):
                response = client.get(path)
                self.assertEqual(response.status_code, 403)
                self.assertEqual(
                    response.json()["errors"],
                    ["You do not have permission to perform this action on this resource."],
                )

    def test_read_all_rule_widens_the_scope(self):
        editor_role = Role.objects.create(name="editor")
        AccessRule.objects.create(
            role=editor_role, element=self.elements["article"], can_read_all=True
        )
        editor = create_user("editor@test.com", "EditorPass1", editor_role)
        client = auth_client(editor)

        rows = client.get("/articles/").json()["data"]
        self.assertEqual(len(rows), 3)

        # Reading everything does not grant writes.
        response = client.patch(
            f"/articles/{self.bob_article.pk}/", {"title": "Edited"}, format="json"
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(client.post("/articles/").status_code, 403)

    def test_update_own_rule_blocks_foreign_rows(self):
        client = auth_client(self.alice)
        response = client.post(f"/categories/{self.bob_category.pk}/status/")
        self.assertEqual(response.status_code, 404)

    def test_missing_rule_results_in_403(self):
        no_rule_role = Role.objects.create(name="NoRule")
        user_without_rule = create_user("norule@test.com", "NoRulePass123", no_rule_role)

        response = auth_client(user_without_rule).get("/articles/")
        self.assertEqual(response.status_code, 403)

    @override_settings(ALLOW_SUPERUSER_BYPASS=True)
    def test_superuser_bypass(self):
        admin = create_user(
            "admin@test.com", "AdminPass1", self.roles[Role.READER], is_superuser=True, is_staff=True
        )
        rows = auth_client(admin).get("/articles/").json()["data"]
        self.assertEqual(len(rows), 3)

    def test_superuser_without_bypass_follows_rules(self):
        admin = create_user(
            "admin@test.com", "AdminPass1", self.roles[Role.READER], is_superuser=True, is_staff=True
        )
        self.assertEqual(auth_client(admin).get("/articles/").status_code, 403)

    def test_inactive_user_gets_401(self):
        inactive_user = create_user("inactive@test.com", "Inactive123", self.roles[Role.WRITER])
        token, _ = TokenService.generate_tokens(inactive_user)
        inactive_user.is_active = False
        inactive_user.save(update_fields=["is_active"])

        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        self.assertEqual(client.get("/articles/").status_code, 401)

    def test_removed_element_locks_writers_out(self):
        BusinessElement.objects.filter(key="tag").delete()
        self.assertEqual(auth_client(self.alice).get("/tags/").status_code, 403)

    def test_views_declare_business_element(self):
        errors = [error for error in run_checks() if error.id == "access_control.E001"]
        self.assertEqual(errors, [])
