"""服务层模块."""

from meme_studio.services.fonts import find_font, has_chinese_characters
from meme_studio.services.layer_renderer import LayerRenderer
from meme_studio.services.layout_renderer import (
    CaptionPlacement,
    LayoutRenderer,
    caption_background_rect,
    caption_font_size,
    compute_cells,
)
from meme_studio.services.raster import DecodeOutcome, decode_all

__all__ = [
    # 字体
    "find_font",
    "has_chinese_characters",
    # 自由编辑器渲染
    "LayerRenderer",
    # 布局渲染
    "LayoutRenderer",
    "CaptionPlacement",
    "compute_cells",
    "caption_font_size",
    "caption_background_rect",
    # 栅格化
    "DecodeOutcome",
    "decode_all",
]
