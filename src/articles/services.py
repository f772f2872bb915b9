"""Editor save pipeline: in-flight guard, metadata rules, and tag sync."""

import logging
import uuid
from dataclasses import dataclass

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError

from core.redis_client import get_redis_client
from .models import METADATA_STATUSES, STATUS_TIMESTAMPS, Article, ArticleStatus, ArticleTag, Tag
from .tags import unique_tags

logger = logging.getLogger(__name__)


class SaveReason:
    MANUAL = "manual"
    AUTO = "auto"
    STATUS = "status"

    choices = (MANUAL, AUTO, STATUS)


SAVE_MESSAGES = {
    SaveReason.MANUAL: "Saved",
    SaveReason.AUTO: "Autosaved",
    SaveReason.STATUS: "Status saved",
}


class SaveInProgress(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "A save is already in progress."
    default_code = "save_in_progress"


class SaveGuardUnavailable(Exception):
    """Raised when Redis cannot be reached to take the save lock (fail-closed)."""


class SaveGuard:
    """Per-article lock so at most one save runs at a time.

    Backed by ``SET NX EX``; the TTL releases a lock whose holder died.
    """

    PREFIX = "article:save:"

    def __init__(self, article_id: int):
        self.key = f"{self.PREFIX}{article_id}"
        self.token = str(uuid.uuid4())
        self.client = get_redis_client()

    def __enter__(self):
        try:
            acquired = self.client.set(
                self.key, self.token, nx=True, ex=settings.SAVE_GUARD_TTL_SECONDS
            )
        except Exception as exc:  # pragma: no cover - network failure
            logger.error("Could not take save lock %s: %s", self.key, exc)
            raise SaveGuardUnavailable("Redis unavailable while taking save lock") from exc
        if not acquired:
            logger.info("Save rejected, %s is already held", self.key)
            raise SaveInProgress()
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            current = self.client.get(self.key)
            if current is not None and _as_text(current) == self.token:
                self.client.delete(self.key)
        except Exception as release_exc:  # pragma: no cover - network failure
            # The TTL frees the key if the release never lands.
            logger.warning("Could not release save lock %s: %s", self.key, release_exc)
        return False


def _as_text(value) -> str:
    return value.decode() if isinstance(value, bytes) else str(value)


@dataclass
class SaveOutcome:
    article: Article
    saved: bool
    message: str


def publish_requirement_message() -> str:
    return (
        "To publish/unpublish/archive you must select a category and have "
        f"at least {settings.MIN_PUBLISH_TAGS} tags."
    )


def has_required_metadata(category, tags: list[str]) -> bool:
    """True when a category is set and enough distinct tags are attached."""
    return category is not None and len(unique_tags(tags)) >= settings.MIN_PUBLISH_TAGS


def create_draft(writer) -> Article:
    """Start a new untitled draft for ``writer``."""
    article = Article.objects.create(
        writer=writer,
        title="Untitled",
        body_md="",
        status=ArticleStatus.DRAFT,
        last_saved_at=timezone.now(),
    )
    logger.info("Draft %s created for %s", article.pk, writer.pk)
    return article


def sync_tags(article: Article, names: list[str]) -> list[str]:
    """Replace the article's tags with ``names``, creating missing ones.

    An existing tag matching case-insensitively is reused with its stored
    casing.
    """
    tags = []
    for name in unique_tags(names):
        tag = Tag.objects.filter(writer_id=article.writer_id, name__iexact=name).first()
        if tag is None:
            tag = Tag.objects.create(writer_id=article.writer_id, name=name)
        tags.append(tag)

    ArticleTag.objects.filter(article=article).delete()
    ArticleTag.objects.bulk_create([ArticleTag(article=article, tag=tag) for tag in tags])
    return [tag.name for tag in tags]


def save_article(article: Article, changes: dict, reason: str = SaveReason.MANUAL) -> SaveOutcome:
    """Apply editor ``changes`` to ``article`` and persist them.

    Fields missing from ``changes`` keep their stored values. An autosave
    with nothing changed is a no-op. Entering a published, unpublished, or
    archived status requires a category and ``MIN_PUBLISH_TAGS`` tags, and
    a subcategory that does not belong to the chosen category is cleared.
    """
    with SaveGuard(article.pk):
        current_tags = article.tag_names()

        title = changes.get("title", article.title)
        title = title if title and title.strip() else "Untitled"
        body_md = changes.get("body_md", article.body_md)
        new_status = changes.get("status", article.status)
        category = changes["category"] if "category" in changes else article.category
        subcategory = changes["subcategory"] if "subcategory" in changes else article.subcategory
        tags = unique_tags(changes["tags"]) if "tags" in changes else current_tags

        if subcategory is not None and (category is None or subcategory.category_id != category.pk):
            subcategory = None

        category_id = category.pk if category else None
        subcategory_id = subcategory.pk if subcategory else None
        dirty = (
            title != article.title
            or body_md != article.body_md
            or new_status != article.status
            or category_id != article.category_id
            or subcategory_id != article.subcategory_id
            or [tag.lower() for tag in tags] != [tag.lower() for tag in current_tags]
        )
        if reason == SaveReason.AUTO and not dirty:
            return SaveOutcome(article, False, "Up to date")

        if new_status in METADATA_STATUSES and not has_required_metadata(category, tags):
            raise ValidationError(publish_requirement_message())

        now = timezone.now()
        previous_status = article.status
        article.title = title
        article.body_md = body_md
        article.status = new_status
        article.category = category
        article.subcategory = subcategory
        article.last_saved_at = now

        stamp_field = STATUS_TIMESTAMPS.get(new_status)
        if stamp_field and (new_status != previous_status or getattr(article, stamp_field) is None):
            setattr(article, stamp_field, now)

        with transaction.atomic():
            article.save()
            sync_tags(article, tags)

    if new_status != previous_status:
        logger.info("Article %s status %s -> %s", article.pk, previous_status, new_status)
    return SaveOutcome(article, True, SAVE_MESSAGES.get(reason, "Saved"))


def soft_delete(article: Article) -> Article:
    """Move an article to ``deleted``; the row is kept."""
    return save_article(article, {"status": ArticleStatus.DELETED}, SaveReason.STATUS).article


__all__ = [
    "SaveReason",
    "SaveInProgress",
    "SaveGuardUnavailable",
    "SaveGuard",
    "SaveOutcome",
    "create_draft",
    "has_required_metadata",
    "publish_requirement_message",
    "save_article",
    "soft_delete",
    "sync_tags",
]
