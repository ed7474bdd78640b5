"""指针交互状态机.

Idle -> Dragging(layer_id, offset) -> Idle
Idle -> Resizing(layer_id, handle, start_pointer, start_rect) -> Idle

状态由编辑器持有，指针按下/移动/抬起事件经编辑器路由，同一时刻只有一个
图层处于拖拽或缩放中。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

from meme_studio.utils.constants import MIN_LAYER_SIZE
from meme_studio.utils.geometry import Point, Rect


class ResizeHandle(Enum):
    """控制点位置枚举."""

    TOP_LEFT = auto()
    TOP_CENTER = auto()
    TOP_RIGHT = auto()
    MIDDLE_LEFT = auto()
    MIDDLE_RIGHT = auto()
    BOTTOM_LEFT = auto()
    BOTTOM_CENTER = auto()
    BOTTOM_RIGHT = auto()


_LEFT_HANDLES = (ResizeHandle.TOP_LEFT, ResizeHandle.MIDDLE_LEFT, ResizeHandle.BOTTOM_LEFT)
_RIGHT_HANDLES = (ResizeHandle.TOP_RIGHT, ResizeHandle.MIDDLE_RIGHT, ResizeHandle.BOTTOM_RIGHT)
_TOP_HANDLES = (ResizeHandle.TOP_LEFT, ResizeHandle.TOP_CENTER, ResizeHandle.TOP_RIGHT)
_BOTTOM_HANDLES = (ResizeHandle.BOTTOM_LEFT, ResizeHandle.BOTTOM_CENTER, ResizeHandle.BOTTOM_RIGHT)


@dataclass(frozen=True)
class Idle:
    """空闲，无指针捕获."""

    @property
    def layer_id(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class Dragging:
    """拖拽中.

    Attributes:
        layer_id: 被拖拽的图层
        offset: 指针相对图层左上角的偏移
    """

    layer_id: str
    offset: Point


@dataclass(frozen=True)
class Resizing:
    """缩放中.

    Attributes:
        layer_id: 被缩放的图层
        handle: 控制点
        start_pointer: 按下时的指针位置
        start_rect: 按下时的图层矩形
    """

    layer_id: str
    handle: ResizeHandle
    start_pointer: Point
    start_rect: Rect


InteractionState = Union[Idle, Dragging, Resizing]

IDLE = Idle()


def compute_resize(
    start_rect: Rect,
    handle: ResizeHandle,
    delta: Point,
    min_size: float = MIN_LAYER_SIZE,
) -> Rect:
    """根据控制点和指针位移计算新矩形.

    右/下控制点: 尺寸 = 起始尺寸 + 位移；左/上控制点同时移动左上角，
    保持对边不动。任一边长不小于 min_size。

    Args:
        start_rect: 按下时的矩形
        handle: 控制点
        delta: 指针位移 (dx, dy)
        min_size: 最小边长

    Returns:
        新矩形
    """
    dx, dy = delta
    new_x, new_y = start_rect.x, start_rect.y
    new_w, new_h = start_rect.width, start_rect.height

    if handle in _LEFT_HANDLES:
        new_x = start_rect.x + dx
        new_w = start_rect.width - dx
    if handle in _RIGHT_HANDLES:
        new_w = start_rect.width + dx
    if handle in _TOP_HANDLES:
        new_y = start_rect.y + dy
        new_h = start_rect.height - dy
    if handle in _BOTTOM_HANDLES:
        new_h = start_rect.height + dy

    if new_w < min_size:
        if handle in _LEFT_HANDLES:
            new_x = start_rect.right - min_size
        new_w = min_size
    if new_h < min_size:
        if handle in _TOP_HANDLES:
            new_y = start_rect.bottom - min_size
        new_h = min_size

    return Rect(new_x, new_y, new_w, new_h)
