"""Tests for text utility functions."""

import pytest


class TestMaterials:
    def test_append_material_adds_header(self):
        from tools.text_utils import append_material
        assert append_material("base", "a.txt", "body") == "base\n\n--- Material: a.txt ---\nbody"

    def test_append_empty_text_is_noop(self):
        from tools.text_utils import append_material
        assert append_material("base", "a.txt", "") == "base"

    def test_read_material_file_replaces_bad_bytes(self, tmp_path):
        from tools.text_utils import read_material_file
        path = tmp_path / "notes.bin"
        path.write_bytes("héllo".encode("utf-8") + b"\xff")
        assert read_material_file(path).startswith("héllo")


class TestDataUris:
    def test_image_file_to_data_uri(self, tmp_path):
        from tools.text_utils import image_file_to_data_uri
        path = tmp_path / "c.jpg"
        path.write_bytes(b"abc")
        assert image_file_to_data_uri(path) == "data:image/jpeg;base64,YWJj"

    def test_decode_data_uri(self):
        from tools.text_utils import decode_data_uri
        assert decode_data_uri("data:image/png;base64,YWJj") == ("image/png", b"abc")

    def test_decode_rejects_plain_url(self):
        from tools.text_utils import decode_data_uri
        with pytest.raises(ValueError):
            decode_data_uri("https://example.com/cover.png")


class TestChapterHeading:
    def test_existing_heading_kept(self):
        from tools.text_utils import ensure_chapter_heading
        assert ensure_chapter_heading("## Intro\n\nText", "Other") == "## Intro\n\nText"

    def test_heading_prepended(self):
        from tools.text_utils import ensure_chapter_heading
        assert ensure_chapter_heading("  Text\n", "Intro") == "## Intro\n\nText"


class TestSanitizeFilename:
    def test_unsafe_characters_replaced(self):
        from tools.text_utils import sanitize_filename
        assert sanitize_filename('C/C++: a "guide"?') == "C_C++_ a _guide"

    def test_fallback_for_empty(self):
        from tools.text_utils import sanitize_filename
        assert sanitize_filename("...") == "ebook"

    def test_keeps_cjk(self):
        from tools.text_utils import sanitize_filename
        assert sanitize_filename("深入理解 Python") == "深入理解 Python"


class TestCountTotalChars:
    def test_whitespace_excluded(self):
        from tools.text_utils import count_total_chars
        assert count_total_chars("a b\n\tc") == 3

    def test_punctuation_counted(self):
        from tools.text_utils import count_total_chars
        assert count_total_chars("你好，world!") == 9
