"""Tests for submission content helpers."""

import pytest

from kbw_notes.submissions.content import normalize_tags, sanitize_html, slugify


class TestSanitizeHtml:
    """Tests for sanitize_html."""

    def test_allows_bare_formatting_tags(self) -> None:
        html = "<p>Hello <strong>world</strong></p><br/>"
        assert sanitize_html(html) == html

    def test_escapes_scripts(self) -> None:
        assert sanitize_html("<script>alert(1)</script>") == (
            "&lt;script&gt;alert(1)&lt;/script&gt;"
        )

    def test_attributes_stay_escaped(self) -> None:
        assert "onclick" in sanitize_html('<p onclick="x()">hi</p>')
        assert "<p onclick" not in sanitize_html('<p onclick="x()">hi</p>')

    def test_ampersands_escaped(self) -> None:
        assert sanitize_html("R&D") == "R&amp;D"


class TestSlugify:
    @pytest.mark.parametrize(
        ("title", "slug"),
        [
            ("Hello, World!", "hello-world"),
            ("  Caf\u00e9  Society ", "cafe-society"),
            ("---", ""),
        ],
    )
    def test_slugify(self, title: str, slug: str) -> None:
        assert slugify(title) == slug

    def test_length_capped(self) -> None:
        assert len(slugify("word " * 50)) <= 80


def test_normalize_tags_dedupes_in_order() -> None:
    assert normalize_tags([" AI ", "ml", "ai", "", "ML"]) == ["ai", "ml"]
