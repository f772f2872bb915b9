"""Tag normalization and deduplication.

A tag is a single token: leading ``#`` characters are dropped, whitespace
anywhere inside is rejected, and duplicates are detected case-insensitively
while the first casing seen is kept.
"""

import re
from dataclasses import dataclass, field

# Pasted lists are split on commas and newlines.
SPLIT_RE = re.compile(r"[,\n]+")
LEADING_HASHES_RE = re.compile(r"^#+")
WHITESPACE_RE = re.compile(r"\s")

DUPLICATE = "duplicate"
SPACE = "space"
EMPTY = "empty"
TOO_LONG = "too_long"

# Matches Tag.name.
MAX_TAG_LENGTH = 100

REASON_LABELS = {
    DUPLICATE: "duplicate",
    SPACE: "contains spaces",
    EMPTY: "empty / only #",
    TOO_LONG: f"longer than {MAX_TAG_LENGTH} characters",
}

MAX_REPORTED_REJECTIONS = 20


@dataclass(frozen=True)
class RejectedTag:
    raw: str
    reason: str

    @property
    def label(self) -> str:
        return REASON_LABELS[self.reason]

    def as_dict(self) -> dict:
        return {"raw": self.raw.strip(), "reason": self.reason, "label": self.label}


@dataclass
class TagParseResult:
    """Outcome of adding tokens to an existing tag list."""

    tags: list[str]
    added: list[str] = field(default_factory=list)
    rejected: list[RejectedTag] = field(default_factory=list)

    @property
    def kind(self) -> str:
        return "success" if self.added else "error"

    @property
    def summary(self) -> str:
        if self.added:
            count = len(self.added)
            text = f"Added {count} tag{'' if count == 1 else 's'}"
        else:
            text = "No tags added"
        if self.rejected:
            text += f" • Rejected {len(self.rejected)}"
        return text

    def as_dict(self) -> dict:
        """Report for the client; long rejection lists are cut to the first 20."""
        reported = self.rejected[:MAX_REPORTED_REJECTIONS]
        return {
            "tags": self.tags,
            "added": self.added,
            "rejected": [item.as_dict() for item in reported],
            "rejected_count": len(self.rejected),
            "more_rejected": max(0, len(self.rejected) - MAX_REPORTED_REJECTIONS),
            "kind": self.kind,
            "summary": self.summary,
        }


def normalize_tag(raw: str) -> tuple[str | None, str | None]:
    """Return ``(tag, None)`` for a valid token or ``(None, reason)``."""
    stripped = LEADING_HASHES_RE.sub("", raw.strip()).strip()
    if not stripped:
        return None, EMPTY
    if WHITESPACE_RE.search(stripped):
        return None, SPACE
    if len(stripped) > MAX_TAG_LENGTH:
        return None, TOO_LONG
    return stripped, None


def split_tokens(text: str) -> list[str]:
    """Split pasted text on commas/newlines, dropping empty pieces."""
    return [token for token in SPLIT_RE.split(text) if token]


def add_tags(existing: list[str], tokens: list[str]) -> TagParseResult:
    """Merge ``tokens`` into ``existing``.

    Tokens that are blank after trimming are dropped silently; a visible
    token that is only ``#`` is reported as empty.
    """
    index: dict[str, str] = {}
    for tag in existing:
        index.setdefault(tag.lower(), tag)

    result = TagParseResult(tags=[])
    for raw in tokens:
        value, reason = normalize_tag(raw)
        if value is None:
            if raw.strip():
                result.rejected.append(RejectedTag(raw, reason))
            continue

        key = value.lower()
        if key in index:
            result.rejected.append(RejectedTag(raw, DUPLICATE))
            continue

        index[key] = value
        result.added.append(value)

    result.tags = list(index.values())
    return result


def unique_tags(names: list[str]) -> list[str]:
    """Valid, case-insensitively unique tags from ``names`` in first-seen order."""
    return add_tags([], names).tags


__all__ = [
    "RejectedTag",
    "TagParseResult",
    "normalize_tag",
    "split_tokens",
    "add_tags",
    "unique_tags",
]
