"""自由编辑器图层数据模型.

图层在所属序列中的顺序即 z 序（越靠后越在上层）。

Features:
    - 图层基类与子类（文字、图片）
    - 赋值时校验：尺寸下限、旋转角归一化、颜色格式
    - 克隆（新 ID + 位置偏移）
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meme_studio.utils.constants import (
    DEFAULT_LAYER_FONT_SIZE,
    DEFAULT_LAYER_TEXT_COLOR,
    MAX_LAYER_FONT_SIZE,
    MIN_LAYER_FONT_SIZE,
    MIN_LAYER_SIZE,
)
from meme_studio.utils.geometry import Point, Rect
from meme_studio.utils.image_utils import validate_hex_color


# ===================
# 枚举定义
# ===================


class LayerKind(str, Enum):
    """图层类型枚举."""

    TEXT = "text"
    IMAGE = "image"


class FontWeight(str, Enum):
    """字重."""

    NORMAL = "normal"
    BOLD = "bold"


# ===================
# 辅助函数
# ===================


def generate_layer_id() -> str:
    """生成唯一的图层ID.

    Returns:
        8位UUID字符串
    """
    return uuid.uuid4().hex[:8]


def normalize_rotation(degrees: float) -> float:
    """将角度归一化到 [0, 360)."""
    result = degrees % 360
    # 极小负数取模会得到 360.0
    if result >= 360:
        result = 0.0
    return float(result)


# ===================
# 文字样式
# ===================


class TextStyle(BaseModel):
    """文字图层样式.

    Attributes:
        font_size: 字号
        color: 文字颜色 (#rrggbb)
        font_weight: 字重
        font_family: 字体名称，None 使用默认字体
    """

    font_size: int = Field(
        default=DEFAULT_LAYER_FONT_SIZE,
        ge=MIN_LAYER_FONT_SIZE,
        le=MAX_LAYER_FONT_SIZE,
        description="字号",
    )
    color: str = Field(default=DEFAULT_LAYER_TEXT_COLOR, description="文字颜色")
    font_weight: FontWeight = Field(default=FontWeight.BOLD, description="字重")
    font_family: Optional[str] = Field(default=None, description="字体名称")

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """验证颜色值."""
        return validate_hex_color(v)

    @property
    def is_bold(self) -> bool:
        return self.font_weight == FontWeight.BOLD


# ===================
# 图层基类
# ===================


class Layer(BaseModel):
    """图层基类.

    Attributes:
        id: 图层唯一标识符
        kind: 图层类型
        x: 左上角 X（画布像素）
        y: 左上角 Y（画布像素）
        width: 宽度，不小于 MIN_LAYER_SIZE
        height: 高度，不小于 MIN_LAYER_SIZE
        rotation: 顺时针旋转角度，[0, 360)
    """

    id: str = Field(default_factory=generate_layer_id, description="图层唯一ID")
    kind: LayerKind = Field(description="图层类型")

    x: float = Field(default=0.0, description="X坐标")
    y: float = Field(default=0.0, description="Y坐标")
    width: float = Field(default=100.0, ge=MIN_LAYER_SIZE, description="宽度")
    height: float = Field(default=100.0, ge=MIN_LAYER_SIZE, description="高度")
    rotation: float = Field(default=0.0, description="旋转角度")

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("rotation")
    @classmethod
    def validate_rotation(cls, v: float) -> float:
        """旋转角归一化."""
        return normalize_rotation(v)

    @property
    def bounds(self) -> Rect:
        """图层边界框."""
        return Rect(self.x, self.y, self.width, self.height)

    @property
    def center(self) -> Point:
        """边界框中心（旋转中心）."""
        return self.bounds.center

    def clone(self, dx: float = 0.0, dy: float = 0.0) -> "Layer":
        """克隆图层.

        Args:
            dx: X 方向偏移
            dy: Y 方向偏移

        Returns:
            新的图层实例，具有新的ID
        """
        return self.model_copy(
            deep=True,
            update={"id": generate_layer_id(), "x": self.x + dx, "y": self.y + dy},
        )


class TextLayer(Layer):
    """文字图层.

    文字以左上角为锚点绘制，不自动换行。
    """

    kind: Literal[LayerKind.TEXT] = Field(default=LayerKind.TEXT)
    content: str = Field(description="文字内容")
    style: TextStyle = Field(default_factory=TextStyle, description="文字样式")


class ImageLayer(Layer):
    """图片图层.

    保存原始编码字节，渲染时重新解码并拉伸填满 width x height。
    """

    kind: Literal[LayerKind.IMAGE] = Field(default=LayerKind.IMAGE)
    image_data: bytes = Field(repr=False, description="图片原始字节")
    name: str = Field(default="图片", max_length=100, description="图片名称")
    natural_width: int = Field(ge=1, description="原始宽度")
    natural_height: int = Field(ge=1, description="原始高度")


AnyLayer = Union[TextLayer, ImageLayer]
