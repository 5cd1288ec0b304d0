"""Manual content blocks modelled as a tagged union.

Blocks are stored as loosely-typed JSON with a ``type`` discriminator column.
``parse_block`` turns a stored row into one of the block dataclasses; code that
needs to know whether a block accepts session artifacts matches on the
concrete class instead of inspecting JSON.

Checkpoint ticks are not part of a block or of a work session: they live only
in the client view and reset when the view is left.
"""

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import assert_never
from uuid import UUID


class BlockType(StrEnum):
    """Discriminator stored alongside block content."""

    TEXT = "TEXT"
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    WARNING = "WARNING"
    CHECKPOINT = "CHECKPOINT"
    PHOTO_RECORD = "PHOTO_RECORD"


@dataclass(frozen=True)
class TextBlock:
    """Plain or markdown text."""

    id: UUID
    manual_id: UUID
    sort_order: int
    text: str
    format: str = "plain"


@dataclass(frozen=True)
class ImageBlock:
    """Reference image with optional caption."""

    id: UUID
    manual_id: UUID
    sort_order: int
    url: str
    alt: str | None = None
    caption: str | None = None


@dataclass(frozen=True)
class VideoBlock:
    """Embedded video."""

    id: UUID
    manual_id: UUID
    sort_order: int
    provider: str
    video_id: str
    title: str | None = None


@dataclass(frozen=True)
class WarningBlock:
    """Highlighted warning or notice."""

    id: UUID
    manual_id: UUID
    sort_order: int
    level: str
    text: str
    title: str | None = None


@dataclass(frozen=True)
class CheckpointItem:
    """A single confirmable item of a checkpoint."""

    text: str
    image_url: str | None = None
    video_url: str | None = None


@dataclass(frozen=True)
class CheckpointBlock:
    """List of items a worker confirms while executing the manual."""

    id: UUID
    manual_id: UUID
    sort_order: int
    items: tuple[CheckpointItem, ...] = field(default_factory=tuple)
    title: str | None = None


@dataclass(frozen=True)
class PhotoRecordBlock:
    """Asks the worker to capture a photo of the result."""

    id: UUID
    manual_id: UUID
    sort_order: int
    title: str
    description: str | None = None
    required: bool = False
    reference_image_url: str | None = None


Block = (
    TextBlock
    | ImageBlock
    | VideoBlock
    | WarningBlock
    | CheckpointBlock
    | PhotoRecordBlock
)


def block_type(block: Block) -> BlockType:
    """Return the discriminator for a parsed block."""
    if isinstance(block, TextBlock):
        return BlockType.TEXT
    if isinstance(block, ImageBlock):
        return BlockType.IMAGE
    if isinstance(block, VideoBlock):
        return BlockType.VIDEO
    if isinstance(block, WarningBlock):
        return BlockType.WARNING
    if isinstance(block, CheckpointBlock):
        return BlockType.CHECKPOINT
    if isinstance(block, PhotoRecordBlock):
        return BlockType.PHOTO_RECORD
    assert_never(block)


def accepts_notes(block: Block) -> bool:
    """Return True when a work-session note may be attached to the block."""
    if isinstance(
        block,
        TextBlock
        | ImageBlock
        | VideoBlock
        | WarningBlock
        | CheckpointBlock
        | PhotoRecordBlock,
    ):
        return True
    assert_never(block)


def accepts_photo_records(block: Block) -> bool:
    """Return True when photo captures may be recorded against the block."""
    if isinstance(block, PhotoRecordBlock):
        return True
    if isinstance(
        block, TextBlock | ImageBlock | VideoBlock | WarningBlock | CheckpointBlock
    ):
        return False
    assert_never(block)


def parse_block(row: Mapping[str, object]) -> Block:
    """Build a block from a stored row.

    The row carries ``id``, ``manual_id``, ``type``, ``sort_order`` and
    ``content`` (a JSON object or its serialized string). Raises ``ValueError``
    for an unknown discriminator.
    """
    raw_type = str(row.get("type", "")).upper()
    try:
        kind = BlockType(raw_type)
    except ValueError as exc:
        raise ValueError(f"Unknown block type: {raw_type!r}") from exc
    content = _load_content(row.get("content"))
    block_id = _as_uuid(row["id"])
    manual_id = _as_uuid(row["manual_id"])
    sort_order = int(row.get("sort_order") or 0)
    return _PARSERS[kind](block_id, manual_id, sort_order, content)


def _load_content(raw: object) -> dict[str, object]:
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw) if raw else {}
        except json.JSONDecodeError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    if isinstance(raw, Mapping):
        return dict(raw)
    return {}


def _as_uuid(value: object) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


def _optional_str(content: Mapping[str, object], key: str) -> str | None:
    value = content.get(key)
    return str(value) if value is not None else None


def _parse_text(
    block_id: UUID, manual_id: UUID, sort_order: int, content: dict[str, object]
) -> TextBlock:
    return TextBlock(
        id=block_id,
        manual_id=manual_id,
        sort_order=sort_order,
        text=str(content.get("text", "")),
        format=str(content.get("format") or "plain"),
    )


def _parse_image(
    block_id: UUID, manual_id: UUID, sort_order: int, content: dict[str, object]
) -> ImageBlock:
    return ImageBlock(
        id=block_id,
        manual_id=manual_id,
        sort_order=sort_order,
        url=str(content.get("url", "")),
        alt=_optional_str(content, "alt"),
        caption=_optional_str(content, "caption"),
    )


def _parse_video(
    block_id: UUID, manual_id: UUID, sort_order: int, content: dict[str, object]
) -> VideoBlock:
    return VideoBlock(
        id=block_id,
        manual_id=manual_id,
        sort_order=sort_order,
        provider=str(content.get("provider") or "youtube"),
        video_id=str(content.get("videoId", "")),
        title=_optional_str(content, "title"),
    )


def _parse_warning(
    block_id: UUID, manual_id: UUID, sort_order: int, content: dict[str, object]
) -> WarningBlock:
    return WarningBlock(
        id=block_id,
        manual_id=manual_id,
        sort_order=sort_order,
        level=str(content.get("level") or "warning"),
        text=str(content.get("text", "")),
        title=_optional_str(content, "title"),
    )


def _parse_checkpoint(
    block_id: UUID, manual_id: UUID, sort_order: int, content: dict[str, object]
) -> CheckpointBlock:
    raw_items = content.get("items")
    items: list[CheckpointItem] = []
    if isinstance(raw_items, list):
        for raw in raw_items:
            # Older manuals store bare strings.
            if isinstance(raw, str):
                items.append(CheckpointItem(text=raw))
            elif isinstance(raw, dict):
                items.append(
                    CheckpointItem(
                        text=str(raw.get("text", "")),
                        image_url=_optional_str(raw, "imageUrl"),
                        video_url=_optional_str(raw, "videoUrl"),
                    )
                )
    return CheckpointBlock(
        id=block_id,
        manual_id=manual_id,
        sort_order=sort_order,
        items=tuple(items),
        title=_optional_str(content, "title"),
    )


def _parse_photo_record(
    block_id: UUID, manual_id: UUID, sort_order: int, content: dict[str, object]
) -> PhotoRecordBlock:
    return PhotoRecordBlock(
        id=block_id,
        manual_id=manual_id,
        sort_order=sort_order,
        title=str(content.get("title", "")),
        description=_optional_str(content, "description"),
        required=bool(content.get("required", False)),
        reference_image_url=_optional_str(content, "referenceImageUrl"),
    )


_PARSERS: dict[
    BlockType, Callable[[UUID, UUID, int, dict[str, object]], Block]
] = {
    BlockType.TEXT: _parse_text,
    BlockType.IMAGE: _parse_image,
    BlockType.VIDEO: _parse_video,
    BlockType.WARNING: _parse_warning,
    BlockType.CHECKPOINT: _parse_checkpoint,
    BlockType.PHOTO_RECORD: _parse_photo_record,
}
