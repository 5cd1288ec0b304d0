"""Tests for block parsing and attachability."""

import json
from uuid import uuid4

import pytest

from manual_ops.domain.blocks import (
    BlockType,
    CheckpointBlock,
    PhotoRecordBlock,
    TextBlock,
    VideoBlock,
    accepts_notes,
    accepts_photo_records,
    block_type,
    parse_block,
)


def _row(kind: str, content: object) -> dict[str, object]:
    return {
        "id": str(uuid4()),
        "manual_id": str(uuid4()),
        "type": kind,
        "sort_order": 2,
        "content": content,
    }


def test_parse_photo_record_block_from_json_string() -> None:
    block = parse_block(
        _row(
            "PHOTO_RECORD",
            json.dumps(
                {
                    "title": "Display case",
                    "required": True,
                    "referenceImageUrl": "https://cdn.example.com/ref.jpg",
                }
            ),
        )
    )

    assert isinstance(block, PhotoRecordBlock)
    assert block.title == "Display case"
    assert block.required is True
    assert block.reference_image_url == "https://cdn.example.com/ref.jpg"
    assert block.sort_order == 2


def test_parse_checkpoint_accepts_strings_and_objects() -> None:
    block = parse_block(
        _row(
            "CHECKPOINT",
            {"items": ["Lights on", {"text": "Alarm off", "imageUrl": "a.jpg"}]},
        )
    )

    assert isinstance(block, CheckpointBlock)
    assert [item.text for item in block.items] == ["Lights on", "Alarm off"]
    assert block.items[1].image_url == "a.jpg"


def test_parse_video_reads_camel_case_id() -> None:
    block = parse_block(_row("video", {"provider": "youtube", "videoId": "abc"}))

    assert isinstance(block, VideoBlock)
    assert block.video_id == "abc"
    assert block_type(block) is BlockType.VIDEO


def test_unknown_block_type_is_rejected() -> None:
    with pytest.raises(ValueError):
        parse_block(_row("SPREADSHEET", {}))


def test_malformed_content_falls_back_to_defaults() -> None:
    block = parse_block(_row("TEXT", "{not json"))

    assert isinstance(block, TextBlock)
    assert block.text == ""


@pytest.mark.parametrize("kind", [kind.value for kind in BlockType])
def test_attachability_by_kind(kind: str) -> None:
    block = parse_block(_row(kind, {}))

    assert accepts_notes(block) is True
    assert accepts_photo_records(block) is (kind == "PHOTO_RECORD")
