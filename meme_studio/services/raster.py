"""栅格化公共函数.

两种编辑模式共用：并发解码、半透明矩形混合、描边文字与占位块绘制。
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from PIL import Image, ImageDraw

from meme_studio.models.app_settings import DecodeFailurePolicy
from meme_studio.utils.exceptions import ImageDecodeError
from meme_studio.utils.geometry import Point, Rect
from meme_studio.utils.image_utils import RGBAColor, decode_image, ensure_rgba
from meme_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

PLACEHOLDER_FILL = (200, 200, 200, 255)
PLACEHOLDER_OUTLINE = (120, 120, 120, 255)


class DecodeOutcome:
    """单张图片的解码结果.

    image 为空表示解码失败；failed 为 True 时按策略决定是否绘制占位块。
    """

    __slots__ = ("image", "error")

    def __init__(
        self,
        image: Optional[Image.Image] = None,
        error: Optional[ImageDecodeError] = None,
    ) -> None:
        self.image = image
        self.error = error

    @property
    def failed(self) -> bool:
        return self.image is None


async def decode_all(
    sources: Sequence[tuple[bytes, str]],
    policy: DecodeFailurePolicy = DecodeFailurePolicy.SKIP,
) -> list[DecodeOutcome]:
    """并发解码全部图片，全部完成（成功或失败）后才返回.

    Args:
        sources: (字节数据, 来源描述) 列表
        policy: 解码失败策略

    Returns:
        与输入顺序一致的解码结果

    Raises:
        ImageDecodeError: 策略为 ABORT 且存在解码失败
    """
    if not sources:
        return []

    loop = asyncio.get_running_loop()
    results = await asyncio.gather(
        *(loop.run_in_executor(None, decode_image, data, name) for data, name in sources),
        return_exceptions=True,
    )

    outcomes: list[DecodeOutcome] = []
    for (_, name), result in zip(sources, results):
        if isinstance(result, ImageDecodeError):
            if policy == DecodeFailurePolicy.ABORT:
                raise result
            logger.warning(f"图片解码失败，按策略 {policy.value} 处理: {name}")
            outcomes.append(DecodeOutcome(error=result))
        elif isinstance(result, BaseException):
            raise result
        else:
            outcomes.append(DecodeOutcome(image=ensure_rgba(result)))
    return outcomes


def new_overlay(size: tuple[int, int]) -> Image.Image:
    """创建全透明覆盖层."""
    return Image.new("RGBA", size, (0, 0, 0, 0))


def blend_rect(canvas: Image.Image, rect: Rect, color: RGBAColor) -> Image.Image:
    """按 alpha 混合绘制填充矩形.

    ImageDraw 直接在 RGBA 上绘制会覆盖像素而非混合，因此经覆盖层合成。

    Returns:
        合成后的画布
    """
    overlay = new_overlay(canvas.size)
    ImageDraw.Draw(overlay).rectangle(inclusive_box(rect), fill=color)
    return Image.alpha_composite(canvas, overlay)


def draw_outlined_text(
    draw: ImageDraw.ImageDraw,
    position: Point,
    text: str,
    font,
    fill: RGBAColor,
    stroke_fill: RGBAColor,
    stroke_width: int,
    anchor: str,
) -> None:
    """先描边后填充绘制文字."""
    draw.text(
        position,
        text,
        font=font,
        fill=stroke_fill,
        stroke_width=stroke_width,
        stroke_fill=stroke_fill,
        anchor=anchor,
    )
    draw.text(position, text, font=font, fill=fill, anchor=anchor)


def draw_placeholder(draw: ImageDraw.ImageDraw, rect: Rect) -> None:
    """绘制解码失败占位块（灰底 + 对角线）."""
    box = inclusive_box(rect)
    draw.rectangle(box, fill=PLACEHOLDER_FILL, outline=PLACEHOLDER_OUTLINE, width=2)
    draw.line([(box[0], box[1]), (box[2], box[3])], fill=PLACEHOLDER_OUTLINE, width=2)
    draw.line([(box[0], box[3]), (box[2], box[1])], fill=PLACEHOLDER_OUTLINE, width=2)


def paste_stretched(target: Image.Image, image: Image.Image, rect: Rect) -> None:
    """把图片拉伸到 rect 大小后贴到目标上（带 alpha 蒙版）."""
    left, top, right, bottom = rect.to_box()
    size = (max(1, right - left), max(1, bottom - top))
    resized = ensure_rgba(image).resize(size, Image.Resampling.LANCZOS)
    target.paste(resized, (left, top), resized)


def inclusive_box(rect: Rect) -> tuple[int, int, int, int]:
    """转换为 ImageDraw.rectangle 使用的闭区间坐标."""
    left, top, right, bottom = rect.to_box()
    return (left, top, max(left, right - 1), max(top, bottom - 1))
