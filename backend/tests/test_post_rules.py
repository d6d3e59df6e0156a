"""
Blogging API — Post Rules Unit Tests
======================================

What:  Tests for validation, derived fields and the pre-persist step.
How:   Pure functions; no database or HTTP.

What we test:
    ✅ readTime = ceil(words / 200)
    ✅ slug alphabet and hyphen placement
    ✅ excerpt truncation
    ✅ tag normalisation
    ✅ field validation with one error per offending field
    ✅ partial updates touch only supplied fields
"""

import re
from types import SimpleNamespace

import pytest

from app.exceptions import ValidationError
from app.services.post_rules import (
    apply_update,
    compute_read_time,
    excerpt,
    normalize_tags,
    prepare_for_create,
    slugify,
    validate_post_fields,
)

SLUG_PATTERN = re.compile(r"^(?:[a-z0-9]+(?:-[a-z0-9]+)*)?$")


class TestReadTime:

    @pytest.mark.parametrize(
        "words, expected",
        [(1, 1), (199, 1), (200, 1), (201, 2), (400, 2), (401, 3)],
    )
    def test_ceil_of_words_over_200(self, words, expected):
        content = " ".join(["palavra"] * words)
        assert compute_read_time(content) == expected

    def test_counts_whitespace_delimited_tokens(self):
        assert compute_read_time("um\ndois\t\ttrês   quatro") == 1


class TestSlugify:

    def test_hello_world(self):
        assert slugify("Hello World!") == "hello-world"

    def test_collapses_whitespace_underscores_and_hyphens(self):
        assert slugify("  Python_para -- Iniciantes ") == "python-para-iniciantes"

    def test_strips_leading_and_trailing_hyphens(self):
        assert slugify("--- Aula 01 ---") == "aula-01"

    @pytest.mark.parametrize(
        "title",
        [
            "Introdução à Programação",
            "C++ & C#: diferenças?",
            "___",
            "!!!",
            "Ciências: O Ciclo da Água (parte 2)",
            "tab\tseparated\nlines",
            "MiXeD CaSe 123",
        ],
    )
    def test_only_lowercase_alphanumerics_and_single_hyphens(self, title):
        slug = slugify(title)
        assert SLUG_PATTERN.match(slug), slug
        assert "--" not in slug
        assert not slug.startswith("-") and not slug.endswith("-")


class TestExcerpt:

    def test_short_content_unchanged(self):
        text = "a" * 150
        assert excerpt(text) == text

    def test_long_content_truncated_with_ellipsis(self):
        text = "b" * 151
        assert excerpt(text) == "b" * 150 + "..."

    def test_custom_length(self):
        assert excerpt("0123456789", length=4) == "0123..."


class TestNormalizeTags:

    def test_trims_lowercases_and_deduplicates(self):
        assert normalize_tags([" Python ", "python", "WEB", ""]) == ["python", "web"]

    def test_none_is_empty(self):
        assert normalize_tags(None) == []


class TestValidatePostFields:

    def test_valid_creation_defaults(self):
        cleaned = validate_post_fields(
            {"title": "  Olá  ", "content": "0123456789", "author": "Al"}
        )
        assert cleaned["title"] == "Olá"
        assert cleaned["tags"] == []
        assert cleaned["isPublished"] is True

    def test_reports_every_offending_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_post_fields({"title": "ab", "content": "curto", "author": "A"})
        fields = {e["field"] for e in exc_info.value.errors}
        assert fields == {"title", "content", "author"}

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_post_fields({})
        messages = {e["field"]: e["message"] for e in exc_info.value.errors}
        assert messages["title"] == "Título é obrigatório"

    def test_title_too_long(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_post_fields({"title": "x" * 201, "content": "0123456789", "author": "Al"})
        assert exc_info.value.errors[0]["field"] == "title"

    def test_length_measured_after_trimming(self):
        with pytest.raises(ValidationError):
            validate_post_fields({"title": "  ab  ", "content": "0123456789", "author": "Al"})

    def test_tags_must_be_list_of_strings(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_post_fields(
                {"title": "Olá", "content": "0123456789", "author": "Al", "tags": [1, 2]}
            )
        assert exc_info.value.errors[0]["field"] == "tags"

    def test_is_published_must_be_boolean(self):
        with pytest.raises(ValidationError):
            validate_post_fields({"isPublished": "true"}, partial=True)

    def test_partial_skips_absent_fields(self):
        assert validate_post_fields({"title": "Novo"}, partial=True) == {"title": "Novo"}


class TestPrepareForCreate:

    def test_derived_fields(self):
        values = prepare_for_create(
            {"title": "Hello World!", "content": "0123456789", "author": "Al", "tags": ["A"]}
        )
        assert values["read_time"] == 1
        assert values["is_published"] is True
        assert values["tags"] == ["a"]
        assert values["created_at"] == values["updated_at"]


class TestApplyUpdate:

    def _post(self):
        return SimpleNamespace(
            title="Título original",
            content="Conteúdo original do post",
            author="Prof. Ana",
            tags=["python"],
            is_published=False,
            read_time=1,
            updated_at=None,
        )

    def test_only_supplied_fields_change(self):
        post = apply_update(self._post(), {"title": "New"})
        assert post.title == "New"
        assert post.content == "Conteúdo original do post"
        assert post.author == "Prof. Ana"
        assert post.tags == ["python"]
        assert post.is_published is False
        assert post.updated_at is not None

    def test_new_content_recomputes_read_time(self):
        post = apply_update(self._post(), {"content": " ".join(["x"] * 401)})
        assert post.read_time == 3

    def test_is_published_toggles(self):
        post = apply_update(self._post(), {"isPublished": True})
        assert post.is_published is True

    def test_invalid_update_leaves_post_untouched(self):
        post = self._post()
        with pytest.raises(ValidationError):
            apply_update(post, {"title": "ab", "author": "Novo Autor"})
        assert post.title == "Título original"
        assert post.author == "Prof. Ana"
