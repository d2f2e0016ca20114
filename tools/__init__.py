"""Tools package: generation service clients and text utilities."""

from tools.agent_sdk_client import AgentSDKClient
from tools.image_client import ImageClient, to_data_uri
from tools.json_utils import parse_json_response
from tools.schemas import ChapterPayload, OutlinePayload
from tools.text_utils import (
    append_material,
    decode_data_uri,
    count_total_chars,
    ensure_chapter_heading,
    image_file_to_data_uri,
    read_material_file,
    sanitize_filename,
)

__all__ = [
    "AgentSDKClient",
    "ImageClient",
    "to_data_uri",
    "parse_json_response",
    "ChapterPayload",
    "OutlinePayload",
    "append_material",
    "decode_data_uri",
    "count_total_chars",
    "ensure_chapter_heading",
    "image_file_to_data_uri",
    "read_material_file",
    "sanitize_filename",
]
