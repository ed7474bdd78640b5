"""字体查找.

按名称、粗体与文本内容（中文）在系统字体目录中查找 TrueType 字体，
找不到时依次回退到通用无衬线字体和 Pillow 内置字体。
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from PIL import ImageFont

from meme_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont

# 字体搜索路径
FONT_SEARCH_PATHS = [
    "/System/Library/Fonts/",
    "/System/Library/Fonts/Supplemental/",
    "/Library/Fonts/",
    "~/Library/Fonts/",
    "C:/Windows/Fonts/",
    "/usr/share/fonts/",
    "/usr/share/fonts/truetype/",
    "/usr/share/fonts/truetype/dejavu/",
    "/usr/share/fonts/truetype/liberation/",
    "/usr/share/fonts/truetype/msttcorefonts/",
]

# 指定字体缺失时的通用回退
GENERIC_FONT_FALLBACKS = {
    False: ["DejaVuSans.ttf", "LiberationSans-Regular.ttf", "Arial.ttf"],
    True: ["DejaVuSans-Bold.ttf", "LiberationSans-Bold.ttf", "Arial Bold.ttf"],
}

# 中文字体回退列表（macOS/Windows/Linux 常见中文字体）
CHINESE_FONT_FALLBACKS = [
    "PingFang SC.ttc",
    "PingFang.ttc",
    "STHeiti Medium.ttc",
    "Hiragino Sans GB.ttc",
    "msyh.ttc",
    "simhei.ttf",
    "wqy-microhei.ttc",
    "wqy-zenhei.ttc",
    "NotoSansCJK-Regular.ttc",
    "NotoSansSC-Regular.otf",
]


def has_chinese_characters(text: str) -> bool:
    """检查文本是否包含中文字符."""
    for char in text:
        if "\u4e00" <= char <= "\u9fff" or "\u3400" <= char <= "\u4dbf":
            return True
    return False


def _search(file_names: list[str], font_size: int) -> Optional[ImageFont.FreeTypeFont]:
    """在搜索路径中查找第一个可加载的字体文件."""
    for search_path in FONT_SEARCH_PATHS:
        expanded_path = os.path.expanduser(search_path)
        if not os.path.isdir(expanded_path):
            continue

        for name in file_names:
            font_path = os.path.join(expanded_path, name)
            if os.path.exists(font_path):
                try:
                    return ImageFont.truetype(font_path, font_size)
                except OSError:
                    continue
    return None


def _family_variants(font_family: str, bold: bool) -> list[str]:
    variants = []
    if bold:
        variants.extend([
            f"{font_family}-Bold.ttf",
            f"{font_family} Bold.ttf",
            f"{font_family}bd.ttf",
        ])
    variants.extend([
        font_family,
        f"{font_family}.ttf",
        f"{font_family}.otf",
        f"{font_family}.ttc",
    ])
    return variants


@lru_cache(maxsize=64)
def _find_font_cached(
    font_family: Optional[str],
    font_size: int,
    bold: bool,
    needs_chinese: bool,
) -> FontType:
    if needs_chinese:
        chinese_font = _search(CHINESE_FONT_FALLBACKS, font_size)
        if chinese_font:
            return chinese_font

    if font_family:
        try:
            return ImageFont.truetype(font_family, font_size)
        except OSError:
            pass

        found = _search(_family_variants(font_family, bold), font_size)
        if found:
            return found
        logger.warning(f"字体 '{font_family}' 未找到，使用回退字体")

    fallback = _search(GENERIC_FONT_FALLBACKS[bold], font_size)
    if fallback:
        return fallback

    return ImageFont.load_default(size=font_size)


def find_font(
    font_family: Optional[str],
    font_size: int,
    bold: bool = False,
    text_content: Optional[str] = None,
) -> FontType:
    """查找字体.

    Args:
        font_family: 字体名称
        font_size: 字体大小
        bold: 是否粗体
        text_content: 要渲染的文本（用于检测是否需要中文字体）

    Returns:
        ImageFont 对象
    """
    needs_chinese = bool(text_content) and has_chinese_characters(text_content)
    return _find_font_cached(font_family, max(1, int(font_size)), bold, needs_chinese)
