"""图片工具函数模块.

提供图片解码、PNG 编码、颜色转换等工具函数。
"""

from __future__ import annotations

import io
import re
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from meme_studio.utils.constants import PREVIEW_THUMBNAIL_SIZE
from meme_studio.utils.exceptions import ExportError, ImageDecodeError
from meme_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

RGBColor = Tuple[int, int, int]
RGBAColor = Tuple[int, int, int, int]

_HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def decode_image(data: bytes, source: str = "<bytes>") -> Image.Image:
    """字节数据解码为图片.

    强制加载像素，解码错误在此处暴露而不是延迟到绘制时。

    Args:
        data: 图片字节数据
        source: 来源描述（用于错误消息）

    Returns:
        PIL Image 对象

    Raises:
        ImageDecodeError: 数据为空或无法解码
    """
    if not data:
        raise ImageDecodeError(source, "空数据")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        return img
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(source, str(e)) from e


def image_to_png_bytes(image: Image.Image) -> bytes:
    """图片无损编码为 PNG.

    Args:
        image: PIL Image 对象

    Returns:
        PNG 字节数据

    Raises:
        ExportError: 编码失败或输出为空
    """
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as e:
        raise ExportError(f"PNG 编码失败: {e}") from e

    data = buffer.getvalue()
    if not data:
        raise ExportError("PNG 编码结果为空")
    return data


def ensure_rgba(image: Image.Image) -> Image.Image:
    """确保图片为 RGBA 模式."""
    if image.mode != "RGBA":
        return image.convert("RGBA")
    return image


def create_thumbnail(
    image: Image.Image,
    size: Tuple[int, int] = PREVIEW_THUMBNAIL_SIZE,
) -> Image.Image:
    """创建缩略图.

    Args:
        image: PIL Image 对象
        size: 缩略图尺寸

    Returns:
        缩略图
    """
    thumb = image.copy()
    thumb.thumbnail(size, Image.Resampling.LANCZOS)
    return thumb


def validate_hex_color(color: str) -> str:
    """验证 #rrggbb 颜色字符串.

    Returns:
        小写形式的颜色字符串

    Raises:
        ValueError: 格式不正确
    """
    if not isinstance(color, str) or not _HEX_COLOR_RE.match(color):
        raise ValueError(f"颜色必须为 #rrggbb 格式，实际: {color!r}")
    return color.lower()


def hex_to_rgb(color: str) -> RGBColor:
    """#rrggbb 转 RGB 元组."""
    color = validate_hex_color(color)
    return (int(color[1:3], 16), int(color[3:5], 16), int(color[5:7], 16))


def hex_to_rgba(color: str, opacity: float = 1.0) -> RGBAColor:
    """#rrggbb 加不透明度 (0-1) 转 RGBA 元组.

    Example:
        >>> hex_to_rgba("#000000", 0.5)
        (0, 0, 0, 127)
    """
    opacity = max(0.0, min(1.0, opacity))
    return (*hex_to_rgb(color), int(opacity * 255))
