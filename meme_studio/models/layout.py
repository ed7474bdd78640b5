"""布局合成器数据模型.

定义布局模式、源图片与字幕。

Features:
    - 布局模式及其固定画布尺寸、图片上限
    - 源图片（持有一个预览资源 URL）
    - 全局字幕样式与自定义字幕（自然像素坐标锚点）
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meme_studio.models.layer import generate_layer_id
from meme_studio.utils.constants import (
    DEFAULT_CAPTION_BACKGROUND_COLOR,
    DEFAULT_CAPTION_BACKGROUND_OPACITY,
    DEFAULT_CAPTION_TEXT_COLOR,
    DEFAULT_CUSTOM_CAPTION_TEXT,
)
from meme_studio.utils.image_utils import validate_hex_color


class LayoutMode(str, Enum):
    """布局模式枚举."""

    SINGLE = "single"  # 单图
    HORIZONTAL = "horizontal"  # 左右两图
    VERTICAL = "vertical"  # 上下两图
    GRID_2X2 = "grid2x2"  # 2x2 网格


@dataclass(frozen=True)
class LayoutSpec:
    """布局模式的固定参数."""

    name: str
    canvas_width: int
    canvas_height: int
    max_images: int

    @property
    def canvas_size(self) -> tuple[int, int]:
        return (self.canvas_width, self.canvas_height)


LAYOUT_SPECS: dict[LayoutMode, LayoutSpec] = {
    LayoutMode.SINGLE: LayoutSpec("单图", 800, 600, 1),
    LayoutMode.HORIZONTAL: LayoutSpec("水平 (2)", 1200, 600, 2),
    LayoutMode.VERTICAL: LayoutSpec("垂直 (2)", 600, 1200, 2),
    LayoutMode.GRID_2X2: LayoutSpec("2x2 网格", 1000, 1000, 4),
}


def get_layout_spec(mode: LayoutMode) -> LayoutSpec:
    """获取布局参数."""
    return LAYOUT_SPECS[LayoutMode(mode)]


class SourceImage(BaseModel):
    """源图片.

    Attributes:
        id: 唯一ID
        name: 文件名
        data: 原始字节
        preview_url: 预览资源 URL，随图片移除释放
        index: 序号，决定所在单元格
    """

    id: str = Field(default_factory=generate_layer_id)
    name: str = Field(default="image")
    data: bytes = Field(repr=False)
    preview_url: str = Field(default="")
    index: int = Field(default=0, ge=0)

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class CaptionStyle(BaseModel):
    """全局字幕样式."""

    text_color: str = Field(default=DEFAULT_CAPTION_TEXT_COLOR)
    background_color: str = Field(default=DEFAULT_CAPTION_BACKGROUND_COLOR)
    background_opacity: float = Field(
        default=DEFAULT_CAPTION_BACKGROUND_OPACITY, ge=0.0, le=1.0
    )

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("text_color", "background_color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """验证颜色值."""
        return validate_hex_color(v)


class CustomCaption(BaseModel):
    """自定义字幕.

    锚点保存为图片自然像素坐标，预览缩放后依然正确。
    editing 为 True 时表示仍在输入中，不参与栅格化。
    """

    id: str = Field(default_factory=generate_layer_id)
    text: str = Field(default=DEFAULT_CUSTOM_CAPTION_TEXT)
    x: float = Field(description="自然像素 X")
    y: float = Field(description="自然像素 Y")
    image_index: int = Field(default=0, ge=0, description="放置时的活动图片序号")
    color: str = Field(default=DEFAULT_CAPTION_TEXT_COLOR)
    background_color: str = Field(default=DEFAULT_CAPTION_BACKGROUND_COLOR)
    background_opacity: float = Field(
        default=DEFAULT_CAPTION_BACKGROUND_OPACITY, ge=0.0, le=1.0
    )
    editing: bool = Field(default=True)

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("color", "background_color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """验证颜色值."""
        return validate_hex_color(v)

    @property
    def is_renderable(self) -> bool:
        """已提交且有内容."""
        return bool(self.text) and not self.editing
