"""几何计算工具.

坐标换算、边界限制和等比适配等纯函数，不依赖任何图片对象。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

Point = Tuple[float, float]
Size = Tuple[float, float]


@dataclass(frozen=True)
class Rect:
    """轴对齐矩形（左上角 + 宽高）."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def to_box(self) -> tuple[int, int, int, int]:
        """转为 Pillow 使用的整数 (left, top, right, bottom)."""
        return (
            round(self.x),
            round(self.y),
            round(self.right),
            round(self.bottom),
        )


def clamp(value: float, low: float, high: float) -> float:
    """限制数值范围；high 小于 low 时返回 low."""
    return max(low, min(high, value))


def clamp_top_left(
    x: float,
    y: float,
    width: float,
    height: float,
    canvas_width: float,
    canvas_height: float,
) -> Point:
    """限制左上角，使整个边界框留在画布内.

    图层比画布大时，对应轴固定为 0。
    """
    return (
        max(0.0, min(canvas_width - width, x)),
        max(0.0, min(canvas_height - height, y)),
    )


def cap_to_max_side(width: float, height: float, max_side: float) -> Size:
    """等比缩放到最长边等于 max_side.

    Example:
        >>> cap_to_max_side(400, 200, 200)
        (200, 100.0)
    """
    aspect = width / height
    if aspect > 1:
        return (max_side, max_side / aspect)
    return (max_side * aspect, max_side)


def fit_contain(image_width: float, image_height: float, cell: Rect) -> Rect:
    """等比 contain 适配到单元格并居中.

    图片相对更宽时宽度撑满、上下留白；否则高度撑满、左右留白。
    不裁剪。

    Args:
        image_width: 图片原始宽度
        image_height: 图片原始高度
        cell: 目标单元格

    Returns:
        图片在画布上的绘制矩形
    """
    aspect = image_width / image_height
    target_aspect = cell.width / cell.height

    if aspect > target_aspect:
        draw_w = cell.width
        draw_h = cell.width / aspect
        return Rect(cell.x, cell.y + (cell.height - draw_h) / 2, draw_w, draw_h)

    draw_h = cell.height
    draw_w = cell.height * aspect
    return Rect(cell.x + (cell.width - draw_w) / 2, cell.y, draw_w, draw_h)


def display_to_natural(
    display_offset: Point,
    displayed_size: Size,
    natural_size: Size,
) -> Point:
    """屏幕显示坐标换算为图片自然像素坐标.

    natural = offset * (natural_size / displayed_size)，两轴独立计算。

    Example:
        >>> display_to_natural((100, 75), (400, 300), (800, 600))
        (200.0, 150.0)
    """
    dx, dy = display_offset
    dw, dh = displayed_size
    nw, nh = natural_size
    if dw <= 0 or dh <= 0:
        raise ValueError(f"显示尺寸必须为正数: {displayed_size}")
    return (dx * (nw / dw), dy * (nh / dh))
