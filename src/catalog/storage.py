"""Image uploads into named storage buckets.

A bucket is a top-level folder of Django's default storage; keys are
``<bucket>/<uuid4>-<filename>`` so concurrent uploads never collide.
"""

import logging
import uuid

from django.core.files.storage import default_storage
from django.utils.text import get_valid_filename
from rest_framework.exceptions import ValidationError

logger = logging.getLogger(__name__)

CATEGORY_IMAGES = "category-images"
SUBCATEGORY_IMAGES = "subcategory-images"


def store_image(bucket: str, upload) -> str:
    """Save an uploaded image under ``bucket`` and return its storage key."""
    if upload is None:
        raise ValidationError({"file": ["No file was submitted."]})
    content_type = getattr(upload, "content_type", "") or ""
    if not content_type.startswith("image/"):
        raise ValidationError({"file": ["Only image uploads are allowed."]})

    key = f"{bucket}/{uuid.uuid4()}-{get_valid_filename(upload.name)}"
    saved_key = default_storage.save(key, upload)
    logger.info("Stored %s (%s bytes) in %s", saved_key, upload.size, bucket)
    return saved_key


def public_url(request, key: str) -> str:
    """Absolute public URL for a stored key."""
    url = default_storage.url(key)
    if request is None:
        return url
    return request.build_absolute_uri(url)


__all__ = ["CATEGORY_IMAGES", "SUBCATEGORY_IMAGES", "store_image", "public_url"]
