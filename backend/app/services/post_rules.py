"""
Blogging API — Post Entity Rules
==================================

What:  Field validation, derived-field computation, and the pre-persist
       transformation for blog posts.
Why:   Domain rules live in one plain-Python module, independent of the ORM,
       so they run identically for creation and update and can be tested
       without a database.
How:   Pure functions over dicts/strings. The repository calls
       `prepare_for_create()` / `apply_update()` right before persisting.

Field Rules (messages are user-facing, in Portuguese like the rest of the API):
    title    3–200 chars after trimming, required
    content  at least 10 chars after trimming, required
    author   2–100 chars after trimming, required
    tags     list of strings; stored trimmed, lowercase, de-duplicated
    isPublished  boolean

Derived Fields:
    readTime = ceil(word_count(content) / 200)   (recomputed when content changes)
    slug     = slugify(title)                     (computed on read, never stored)
    excerpt  = first 150 chars + "..."            (computed on read)
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.exceptions import ValidationError

WORDS_PER_MINUTE = 200
DEFAULT_EXCERPT_LENGTH = 150

TITLE_MIN, TITLE_MAX = 3, 200
CONTENT_MIN = 10
AUTHOR_MIN, AUTHOR_MAX = 2, 100

# Per-field messages, shared with the request-validation error handler
FIELD_MESSAGES: Dict[str, str] = {
    "title": f"Título deve ter entre {TITLE_MIN} e {TITLE_MAX} caracteres",
    "content": f"Conteúdo deve ter pelo menos {CONTENT_MIN} caracteres",
    "author": f"Autor deve ter entre {AUTHOR_MIN} e {AUTHOR_MAX} caracteres",
    "tags": "Tags deve ser um array",
    "isPublished": "isPublished deve ser um booleano",
    "q": "Termo de busca deve ter pelo menos 2 caracteres",
    "id": "ID inválido",
}

REQUIRED_MESSAGES: Dict[str, str] = {
    "title": "Título é obrigatório",
    "content": "Conteúdo é obrigatório",
    "author": "Autor é obrigatório",
}

# ASCII semantics for \w and \s keep the slug alphabet to [a-z0-9-]
_SLUG_STRIP = re.compile(r"[^\w\s-]", re.ASCII)
_SLUG_COLLAPSE = re.compile(r"[\s_-]+", re.ASCII)


# ══════════════════════════════════════════════════════════════════════════
# Derived Fields
# ══════════════════════════════════════════════════════════════════════════

def word_count(content: str) -> int:
    """Number of whitespace-delimited tokens."""
    return len(content.split())


def compute_read_time(content: str) -> int:
    """Reading time in whole minutes at 200 words per minute, rounded up."""
    return math.ceil(word_count(content) / WORDS_PER_MINUTE)


def slugify(title: str) -> str:
    """
    URL-friendly form of a title.

    Example:
        >>> slugify("Hello World!")
        'hello-world'
        >>> slugify("  Python_para -- Iniciantes ")
        'python-para-iniciantes'
    """
    slug = _SLUG_STRIP.sub("", title.lower())
    slug = _SLUG_COLLAPSE.sub("-", slug)
    return slug.strip("-")


def excerpt(content: str, length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """Content truncated to `length` characters with a trailing ellipsis."""
    if len(content) > length:
        return f"{content[:length]}..."
    return content


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """Trims and lowercases tags, dropping empties and repeated entries."""
    normalized: List[str] = []
    for tag in tags or []:
        value = tag.strip().lower()
        if value and value not in normalized:
            normalized.append(value)
    return normalized


# ══════════════════════════════════════════════════════════════════════════
# Validation
# ══════════════════════════════════════════════════════════════════════════

def _check_text(
    errors: List[Dict[str, str]],
    field: str,
    value: Any,
    min_len: int,
    max_len: Optional[int],
    required: bool,
) -> Optional[str]:
    if value is None:
        if required:
            errors.append({"field": field, "message": REQUIRED_MESSAGES[field]})
        return None
    if not isinstance(value, str):
        errors.append({"field": field, "message": FIELD_MESSAGES[field]})
        return None
    trimmed = value.strip()
    if not trimmed and required:
        errors.append({"field": field, "message": REQUIRED_MESSAGES[field]})
        return None
    if len(trimmed) < min_len or (max_len is not None and len(trimmed) > max_len):
        errors.append({"field": field, "message": FIELD_MESSAGES[field]})
        return None
    return trimmed


def validate_post_fields(fields: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Validates and normalises post fields.

    What:    Checks presence and bounds of every known field and returns the
             cleaned values (trimmed strings, normalised tags).
    Who:     Called by `prepare_for_create` (partial=False) and
             `apply_update` (partial=True, only supplied keys are checked).

    Args:
        fields:  Mapping using API field names (title, content, author, tags, isPublished)
        partial: When True, absent fields are not required

    Returns:
        Dict containing only the supplied (or required) fields, cleaned.

    Raises:
        ValidationError: with one entry per offending field
    """
    errors: List[Dict[str, str]] = []
    cleaned: Dict[str, Any] = {}

    for field, min_len, max_len in (
        ("title", TITLE_MIN, TITLE_MAX),
        ("content", CONTENT_MIN, None),
        ("author", AUTHOR_MIN, AUTHOR_MAX),
    ):
        if partial and fields.get(field) is None:
            continue
        value = _check_text(errors, field, fields.get(field), min_len, max_len, required=True)
        if value is not None:
            cleaned[field] = value

    if fields.get("tags") is not None:
        tags = fields["tags"]
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            errors.append({"field": "tags", "message": FIELD_MESSAGES["tags"]})
        else:
            cleaned["tags"] = normalize_tags(tags)
    elif not partial:
        cleaned["tags"] = []

    if fields.get("isPublished") is not None:
        if not isinstance(fields["isPublished"], bool):
            errors.append({"field": "isPublished", "message": FIELD_MESSAGES["isPublished"]})
        else:
            cleaned["isPublished"] = fields["isPublished"]
    elif not partial:
        cleaned["isPublished"] = True

    if errors:
        raise ValidationError(errors=errors)
    return cleaned


# ══════════════════════════════════════════════════════════════════════════
# Pre-persist Transformation
# ══════════════════════════════════════════════════════════════════════════

def _now() -> datetime:
    return datetime.now(timezone.utc)


def prepare_for_create(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Turns raw creation input into the column values of a new post.

    Returns keys matching the ORM attributes: title, content, author, tags,
    is_published, read_time, created_at, updated_at.
    """
    cleaned = validate_post_fields(fields)
    now = _now()
    return {
        "title": cleaned["title"],
        "content": cleaned["content"],
        "author": cleaned["author"],
        "tags": cleaned["tags"],
        "is_published": cleaned["isPublished"],
        "read_time": compute_read_time(cleaned["content"]),
        "created_at": now,
        "updated_at": now,
    }


def apply_update(post: Any, changes: Dict[str, Any]) -> Any:
    """
    Applies a partial update to a loaded post in place.

    Only supplied (non-None) fields change. The merged record is validated
    again as a whole so a persisted post always satisfies every rule, and
    readTime follows the new content.
    """
    cleaned = validate_post_fields(changes, partial=True)

    merged = {
        "title": cleaned.get("title", post.title),
        "content": cleaned.get("content", post.content),
        "author": cleaned.get("author", post.author),
        "tags": cleaned.get("tags", list(post.tags)),
        "isPublished": cleaned.get("isPublished", post.is_published),
    }
    validate_post_fields(merged)

    if "title" in cleaned:
        post.title = cleaned["title"]
    if "content" in cleaned:
        post.content = cleaned["content"]
        post.read_time = compute_read_time(cleaned["content"])
    if "author" in cleaned:
        post.author = cleaned["author"]
    if "tags" in cleaned:
        post.tags = cleaned["tags"]
    if "isPublished" in cleaned:
        post.is_published = cleaned["isPublished"]
    post.updated_at = _now()
    return post
