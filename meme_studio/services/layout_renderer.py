"""布局合成渲染.

按布局模式把源图片放入固定单元格，再叠加全局字幕与自定义字幕。

Features:
    - 每种模式固定画布尺寸与单元格划分
    - 单元格白底 + 等比 contain 适配居中
    - 字幕先描边后填充，可选半透明背景块
    - 全部图片解码完成后才绘制字幕
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

from PIL import Image, ImageDraw

from meme_studio.models.app_settings import DecodeFailurePolicy
from meme_studio.models.layout import (
    CaptionStyle,
    CustomCaption,
    LayoutMode,
    SourceImage,
    get_layout_spec,
)
from meme_studio.services.fonts import find_font
from meme_studio.services.raster import (
    blend_rect,
    decode_all,
    draw_outlined_text,
    draw_placeholder,
    inclusive_box,
    paste_stretched,
)
from meme_studio.utils.constants import (
    BOTTOM_CAPTION_OFFSET,
    CAPTION_PADDING,
    CAPTION_STROKE_COLOR,
    CELL_BACKGROUND_COLOR,
    CUSTOM_CAPTION_FONT_DIVISOR,
    CUSTOM_CAPTION_STROKE_WIDTH,
    DEFAULT_CAPTION_FONT_FAMILY,
    GLOBAL_CAPTION_FONT_DIVISOR,
    GLOBAL_CAPTION_STROKE_WIDTH,
    TOP_CAPTION_OFFSET,
)
from meme_studio.utils.geometry import Rect, fit_contain
from meme_studio.utils.image_utils import hex_to_rgba
from meme_studio.utils.logger import setup_logger

logger = setup_logger(__name__)


class CaptionPlacement(str, Enum):
    """字幕锚点相对文字的位置."""

    TOP = "top"  # 锚点在文字顶部
    BOTTOM = "bottom"  # 锚点在文字底部
    CENTER = "center"  # 锚点在文字中心


# Pillow 文字锚点
_PILLOW_ANCHORS = {
    CaptionPlacement.TOP: "ma",
    CaptionPlacement.BOTTOM: "md",
    CaptionPlacement.CENTER: "mm",
}


# ===================
# 几何计算
# ===================


def compute_cells(mode: LayoutMode, image_count: int) -> list[Rect]:
    """计算每张图片所在单元格.

    水平/垂直模式只有在图片数恰好等于上限时才分成两格，否则每张图片都
    使用整个画布；网格模式按行优先依次填充。

    Args:
        mode: 布局模式
        image_count: 图片数量

    Returns:
        与图片序号对应的单元格列表
    """
    spec = get_layout_spec(mode)
    width, height = spec.canvas_width, spec.canvas_height
    full = Rect(0, 0, width, height)
    count = min(image_count, spec.max_images)

    if mode == LayoutMode.HORIZONTAL and count == spec.max_images:
        half = width / 2
        return [Rect(i * half, 0, half, height) for i in range(count)]
    if mode == LayoutMode.VERTICAL and count == spec.max_images:
        half = height / 2
        return [Rect(0, i * half, width, half) for i in range(count)]
    if mode == LayoutMode.GRID_2X2:
        cell_w, cell_h = width / 2, height / 2
        return [
            Rect((i % 2) * cell_w, (i // 2) * cell_h, cell_w, cell_h)
            for i in range(count)
        ]
    return [full for _ in range(count)]


def caption_font_size(canvas_width: int, divisor: int) -> int:
    """字幕字号 = floor(画布宽度 / divisor)."""
    return canvas_width // divisor


def caption_background_rect(
    text_width: float,
    font_size: int,
    anchor_x: float,
    anchor_y: float,
    placement: CaptionPlacement,
    padding: int = CAPTION_PADDING,
) -> Rect:
    """计算字幕背景块.

    宽 = 文字宽度 + 左右各 padding，高 = 字号 + padding。

    Args:
        text_width: 测得的文字宽度
        font_size: 字号
        anchor_x: 水平中心
        anchor_y: 锚点 Y
        placement: 锚点相对文字的位置
        padding: 内边距

    Returns:
        背景矩形
    """
    left = anchor_x - text_width / 2 - padding
    if placement == CaptionPlacement.TOP:
        top = anchor_y - padding / 2
    elif placement == CaptionPlacement.BOTTOM:
        top = anchor_y - font_size - padding / 2
    else:
        top = anchor_y - font_size / 2 - padding / 2
    return Rect(left, top, text_width + padding * 2, font_size + padding)


# ===================
# 渲染器
# ===================


class LayoutRenderer:
    """布局渲染器.

    Example:
        >>> renderer = LayoutRenderer()
        >>> image = await renderer.render(LayoutMode.SINGLE, images, "TOP", "BOTTOM")
    """

    def __init__(
        self,
        decode_failure_policy: DecodeFailurePolicy = DecodeFailurePolicy.SKIP,
        font_family: str = DEFAULT_CAPTION_FONT_FAMILY,
    ) -> None:
        self.decode_failure_policy = decode_failure_policy
        self.font_family = font_family

    async def render(
        self,
        mode: LayoutMode,
        images: Sequence[SourceImage],
        top_text: str = "",
        bottom_text: str = "",
        style: Optional[CaptionStyle] = None,
        captions: Sequence[CustomCaption] = (),
    ) -> Image.Image:
        """渲染完整画面.

        Args:
            mode: 布局模式
            images: 源图片（按序号）
            top_text: 顶部字幕
            bottom_text: 底部字幕
            style: 全局字幕样式
            captions: 自定义字幕

        Returns:
            RGBA 模式的渲染结果

        Raises:
            ImageDecodeError: 策略为 ABORT 且存在解码失败
        """
        style = style or CaptionStyle()
        spec = get_layout_spec(mode)
        ordered = sorted(images, key=lambda img: img.index)[: spec.max_images]
        captions = list(captions)

        outcomes = await decode_all(
            [(img.data, img.name) for img in ordered],
            self.decode_failure_policy,
        )

        canvas = Image.new("RGBA", spec.canvas_size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(canvas)
        cells = compute_cells(mode, len(ordered))

        for cell, outcome in zip(cells, outcomes):
            if outcome.failed:
                if self.decode_failure_policy == DecodeFailurePolicy.PLACEHOLDER:
                    draw.rectangle(inclusive_box(cell), fill=CELL_BACKGROUND_COLOR)
                    draw_placeholder(draw, cell)
                continue

            draw.rectangle(inclusive_box(cell), fill=CELL_BACKGROUND_COLOR)
            target = fit_contain(outcome.image.width, outcome.image.height, cell)
            paste_stretched(canvas, outcome.image, target)

        canvas = self._draw_global_captions(canvas, top_text, bottom_text, style)
        canvas = self._draw_custom_captions(canvas, captions)

        logger.debug(
            f"布局渲染完成: mode={mode.value}, images={len(ordered)}, "
            f"captions={len(captions)}"
        )
        return canvas

    def _draw_global_captions(
        self,
        canvas: Image.Image,
        top_text: str,
        bottom_text: str,
        style: CaptionStyle,
    ) -> Image.Image:
        width, height = canvas.size
        font_size = caption_font_size(width, GLOBAL_CAPTION_FONT_DIVISOR)

        if top_text:
            canvas = self._draw_caption(
                canvas,
                top_text,
                (width / 2, TOP_CAPTION_OFFSET),
                font_size,
                CaptionPlacement.TOP,
                style.text_color,
                style.background_color,
                style.background_opacity,
                GLOBAL_CAPTION_STROKE_WIDTH,
            )
        if bottom_text:
            canvas = self._draw_caption(
                canvas,
                bottom_text,
                (width / 2, height - BOTTOM_CAPTION_OFFSET),
                font_size,
                CaptionPlacement.BOTTOM,
                style.text_color,
                style.background_color,
                style.background_opacity,
                GLOBAL_CAPTION_STROKE_WIDTH,
            )
        return canvas

    def _draw_custom_captions(
        self,
        canvas: Image.Image,
        captions: Sequence[CustomCaption],
    ) -> Image.Image:
        font_size = caption_font_size(canvas.width, CUSTOM_CAPTION_FONT_DIVISOR)
        for caption in captions:
            # 输入中的字幕尚未提交
            if not caption.is_renderable:
                continue
            canvas = self._draw_caption(
                canvas,
                caption.text,
                (caption.x, caption.y),
                font_size,
                CaptionPlacement.CENTER,
                caption.color,
                caption.background_color,
                caption.background_opacity,
                CUSTOM_CAPTION_STROKE_WIDTH,
            )
        return canvas

    def _draw_caption(
        self,
        canvas: Image.Image,
        text: str,
        anchor: tuple[float, float],
        font_size: int,
        placement: CaptionPlacement,
        color: str,
        background_color: str,
        background_opacity: float,
        stroke_width: int,
    ) -> Image.Image:
        """绘制一条字幕（背景块 -> 描边 -> 填充）."""
        font = find_font(self.font_family, font_size, bold=True, text_content=text)

        if background_opacity > 0:
            text_width = ImageDraw.Draw(canvas).textlength(text, font=font)
            rect = caption_background_rect(
                text_width, font_size, anchor[0], anchor[1], placement
            )
            canvas = blend_rect(
                canvas, rect, hex_to_rgba(background_color, background_opacity)
            )

        draw_outlined_text(
            ImageDraw.Draw(canvas),
            anchor,
            text,
            font,
            fill=hex_to_rgba(color),
            stroke_fill=CAPTION_STROKE_COLOR,
            stroke_width=stroke_width,
            anchor=_PILLOW_ANCHORS[placement],
        )
        return canvas
