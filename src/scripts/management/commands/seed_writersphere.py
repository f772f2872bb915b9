"""Seed roles, business elements, access rules, and demo content."""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from access_control.models import AccessRule, BusinessElement, Role
from articles.models import Article, ArticleStatus
from articles.services import sync_tags
from authentication.managers import hash_password
from catalog.models import Category, Subcategory

ROLE_NAMES = [Role.WRITER, Role.READER]
ELEMENT_KEYS = ["category", "subcategory", "article", "tag"]
DEMO_EMAILS = ["writer@example.com", "reader@example.com"]

# Writers manage their own rows only; readers use the public endpoints.
WRITER_RULE = {
    "can_read_own": True,
    "can_read_all": False,
    "can_create": True,
    "can_update_own": True,
    "can_update_all": False,
    "can_delete_own": True,
    "can_delete_all": False,
}


def create_seed_roles() -> dict:
    """Create the writer and reader roles and return a name->Role map."""
    roles = {}
    for name in ROLE_NAMES:
        role, _ = Role.objects.get_or_create(name=name)
        roles[name] = role
    return roles


def create_seed_elements() -> dict:
    elements = {}
    for key in ELEMENT_KEYS:
        element, _ = BusinessElement.objects.get_or_create(key=key)
        elements[key] = element
    return elements


def create_seed_rules(roles: dict, elements: dict) -> None:
    """Give writers own-row access to every element."""
    for element in elements.values():
        AccessRule.objects.update_or_create(
            role=roles[Role.WRITER], element=element, defaults=WRITER_RULE
        )


def create_demo_content(roles: dict) -> None:
    """A demo writer with a small catalog and one published article."""
    User = get_user_model()

    writer, _ = User.objects.get_or_create(
        email="writer@example.com",
        defaults={
            "role": roles[Role.WRITER],
            "first_name": "Demo",
            "last_name": "Writer",
            "password_hash": hash_password("writerpass"),
        },
    )
    User.objects.get_or_create(
        email="reader@example.com",
        defaults={
            "role": roles[Role.READER],
            "first_name": "Demo",
            "last_name": "Reader",
            "password_hash": hash_password("readerpass"),
        },
    )

    engineering, _ = Category.objects.get_or_create(
        writer=writer,
        name="Engineering",
        defaults={"description": "Notes from building things."},
    )
    Category.objects.get_or_create(
        writer=writer,
        name="Travel",
        defaults={"description": "Places and people."},
    )
    backend, _ = Subcategory.objects.get_or_create(
        writer=writer,
        category=engineering,
        name="Backend",
        defaults={"description": "Servers, databases, and queues."},
    )

    now = timezone.now()
    published, created = Article.objects.get_or_create(
        writer=writer,
        title="Shipping an autosaving editor",
        defaults={
            "body_md": "# Autosave\n\nSave on a timer, but only when something changed.",
            "status": ArticleStatus.PUBLISHED,
            "category": engineering,
            "subcategory": backend,
            "last_saved_at": now,
            "published_at": now,
        },
    )
    if created:
        sync_tags(published, ["django", "editor", "autosave", "markdown", "writing"])

    Article.objects.get_or_create(
        writer=writer,
        title="Draft ideas",
        defaults={"body_md": "- tag parsing\n- status toggles", "last_saved_at": now},
    )


class Command(BaseCommand):
    """Management command to seed access rules and demo content."""

    help = (
        "Seed writer/reader roles, business elements, access rules, and a demo "
        "writer with categories and articles. Use --reset to clear seeded data first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Clear seeded roles/elements/rules and demo users before seeding.",
        )
        parser.add_argument(
            "--no-demo",
            action="store_true",
            help="Only seed roles, elements, and rules.",
        )

    def handle(self, *args, **options):
        if options.get("reset"):
            self._reset_seeded_data()

        self.stdout.write("Seeding access rules...")
        roles = create_seed_roles()
        elements = create_seed_elements()
        create_seed_rules(roles, elements)
        if not options.get("no_demo"):
            create_demo_content(roles)
        self.stdout.write(self.style.SUCCESS("Seed completed."))

    def _reset_seeded_data(self) -> None:
        """Remove demo users (their rows cascade) and the seeded access rules."""
        self.stdout.write("Resetting previously seeded data...")

        get_user_model().objects.filter(email__in=DEMO_EMAILS).delete()
        AccessRule.objects.filter(element__key__in=ELEMENT_KEYS).delete()
        BusinessElement.objects.filter(key__in=ELEMENT_KEYS).delete()

        self.stdout.write(self.style.WARNING("Seeded data cleared."))
