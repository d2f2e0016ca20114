"""Tests for JSON extraction and outline payload validation."""

import pytest
from pydantic import ValidationError


class TestParseJsonResponse:
    def test_bare_object(self):
        from tools.json_utils import parse_json_response
        assert parse_json_response('{"title": "Book"}') == {"title": "Book"}

    def test_fenced_block(self):
        from tools.json_utils import parse_json_response
        text = 'Here you go:\n```json\n{"title": "Book", "chapters": []}\n```\nEnjoy.'
        assert parse_json_response(text)["title"] == "Book"

    def test_embedded_in_prose(self):
        from tools.json_utils import parse_json_response
        assert parse_json_response('Sure! {"a": 1} Hope that helps.') == {"a": 1}

    def test_raw_newline_inside_string(self):
        from tools.json_utils import parse_json_response
        assert parse_json_response('{"description": "line one\nline two"}')["description"] == "line one\nline two"

    def test_array_rejected(self):
        from tools.json_utils import parse_json_response
        with pytest.raises(ValueError):
            parse_json_response("[1, 2, 3]")

    def test_garbage_rejected(self):
        from tools.json_utils import parse_json_response
        with pytest.raises(ValueError, match="Failed to parse"):
            parse_json_response("no json here")

    def test_empty_rejected(self):
        from tools.json_utils import parse_json_response
        with pytest.raises(ValueError):
            parse_json_response("")


class TestOutlinePayload:
    def test_camel_case_aliases(self):
        from tools.schemas import OutlinePayload
        payload = OutlinePayload.model_validate({
            "title": "Book",
            "chapters": [{"title": "One", "description": "First", "estimatedPages": 5}],
            "coverPrompt": "A cover",
        })
        outline = payload.to_outline(default_pages=8)
        assert outline.chapters[0].estimated_pages == 5
        assert outline.cover_prompt == "A cover"

    def test_missing_pages_use_default(self):
        from tools.schemas import OutlinePayload
        payload = OutlinePayload.model_validate({
            "title": "Book",
            "chapters": [{"title": "One", "description": "First"}],
            "cover_prompt": "A cover",
        })
        assert payload.to_outline(default_pages=12).chapters[0].estimated_pages == 12

    def test_missing_chapters_rejected(self):
        from tools.schemas import OutlinePayload
        with pytest.raises(ValidationError):
            OutlinePayload.model_validate({"title": "Book", "chapters": [], "cover_prompt": "c"})

    def test_zero_pages_rejected(self):
        from tools.schemas import OutlinePayload
        with pytest.raises(ValidationError):
            OutlinePayload.model_validate({
                "title": "Book",
                "chapters": [{"title": "One", "description": "First", "estimated_pages": 0}],
                "cover_prompt": "c",
            })

    def test_blank_title_rejected(self):
        from tools.schemas import OutlinePayload
        with pytest.raises(ValidationError, match="blank"):
            OutlinePayload.model_validate({
                "title": "   ",
                "chapters": [{"title": "One", "description": "First"}],
                "cover_prompt": "c",
            })

    def test_missing_cover_prompt_rejected(self):
        from tools.schemas import OutlinePayload
        with pytest.raises(ValidationError):
            OutlinePayload.model_validate({
                "title": "Book",
                "chapters": [{"title": "One", "description": "First"}],
            })
