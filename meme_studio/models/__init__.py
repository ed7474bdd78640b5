"""数据模型模块."""

from meme_studio.models.app_settings import DecodeFailurePolicy, Settings
from meme_studio.models.layer import (
    # 枚举
    LayerKind,
    FontWeight,
    # 图层类
    TextStyle,
    Layer,
    TextLayer,
    ImageLayer,
    AnyLayer,
    # 辅助函数
    generate_layer_id,
    normalize_rotation,
)
from meme_studio.models.layout import (
    LAYOUT_SPECS,
    CaptionStyle,
    CustomCaption,
    LayoutMode,
    LayoutSpec,
    SourceImage,
    get_layout_spec,
)

__all__ = [
    # 设置
    "DecodeFailurePolicy",
    "Settings",
    # 枚举
    "LayerKind",
    "FontWeight",
    "LayoutMode",
    # 图层类
    "TextStyle",
    "Layer",
    "TextLayer",
    "ImageLayer",
    "AnyLayer",
    # 布局
    "LAYOUT_SPECS",
    "LayoutSpec",
    "SourceImage",
    "CaptionStyle",
    "CustomCaption",
    "get_layout_spec",
    # 辅助函数
    "generate_layer_id",
    "normalize_rotation",
]
