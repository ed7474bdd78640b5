"""自由编辑器渲染引擎.

将图层序列渲染为固定尺寸画布。

Features:
    - 白色背景，按序列顺序绘制（越靠后越在上层）
    - 每个图层绕自身边界框中心旋转
    - 文字左上角锚定、不换行
    - 图片拉伸填满图层尺寸（不保持比例）
    - 渲染前等待全部图片解码完成
"""

from __future__ import annotations

from typing import Optional, Sequence

from PIL import Image, ImageDraw

from meme_studio.models.app_settings import DecodeFailurePolicy
from meme_studio.models.layer import AnyLayer, ImageLayer, TextLayer
from meme_studio.services.fonts import find_font
from meme_studio.services.raster import (
    DecodeOutcome,
    decode_all,
    draw_placeholder,
    new_overlay,
    paste_stretched,
)
from meme_studio.utils.constants import (
    DEFAULT_LAYER_FONT_FAMILY,
    EDITOR_BACKGROUND_COLOR,
)
from meme_studio.utils.image_utils import hex_to_rgba
from meme_studio.utils.logger import setup_logger

logger = setup_logger(__name__)


class LayerRenderer:
    """图层渲染器.

    Example:
        >>> renderer = LayerRenderer()
        >>> image = await renderer.render(editor.layers, (800, 800))
    """

    def __init__(
        self,
        decode_failure_policy: DecodeFailurePolicy = DecodeFailurePolicy.SKIP,
        default_font_family: str = DEFAULT_LAYER_FONT_FAMILY,
    ) -> None:
        """初始化渲染器.

        Args:
            decode_failure_policy: 图片解码失败策略
            default_font_family: 文字图层未指定字体时使用的字体
        """
        self.decode_failure_policy = decode_failure_policy
        self.default_font_family = default_font_family

    async def render(
        self,
        layers: Sequence[AnyLayer],
        canvas_size: tuple[int, int],
    ) -> Image.Image:
        """渲染图层序列.

        先并发解码所有图片图层，全部结束后再合成，避免半成品画面。

        Args:
            layers: 图层序列（z 序）
            canvas_size: 画布尺寸

        Returns:
            RGB 模式的渲染结果

        Raises:
            ImageDecodeError: 策略为 ABORT 且存在解码失败
        """
        # 渲染期间图层列表可能被修改，先固定快照
        snapshot = list(layers)
        image_layers = [layer for layer in snapshot if isinstance(layer, ImageLayer)]
        outcomes = await decode_all(
            [(layer.image_data, layer.name) for layer in image_layers],
            self.decode_failure_policy,
        )
        decoded = {layer.id: outcome for layer, outcome in zip(image_layers, outcomes)}

        canvas = Image.new("RGBA", canvas_size, (*EDITOR_BACKGROUND_COLOR, 255))
        for layer in snapshot:
            overlay = self._render_layer(layer, canvas_size, decoded.get(layer.id))
            if overlay is None:
                continue
            if layer.rotation:
                # Pillow 正角度为逆时针，图层角度为顺时针
                overlay = overlay.rotate(
                    -layer.rotation,
                    resample=Image.Resampling.BICUBIC,
                    center=layer.center,
                )
            canvas = Image.alpha_composite(canvas, overlay)

        logger.debug(f"图层渲染完成: {len(snapshot)} 个图层, 画布={canvas_size}")
        return canvas.convert("RGB")

    def _render_layer(
        self,
        layer: AnyLayer,
        canvas_size: tuple[int, int],
        outcome: Optional[DecodeOutcome],
    ) -> Optional[Image.Image]:
        """将单个图层绘制到透明覆盖层.

        Returns:
            覆盖层；不贡献像素时返回 None
        """
        if isinstance(layer, TextLayer):
            return self._render_text_layer(layer, canvas_size)
        if isinstance(layer, ImageLayer):
            return self._render_image_layer(layer, canvas_size, outcome)
        logger.warning(f"未知图层类型: {type(layer)}")
        return None

    def _render_text_layer(
        self,
        layer: TextLayer,
        canvas_size: tuple[int, int],
    ) -> Optional[Image.Image]:
        if not layer.content:
            return None

        font = find_font(
            layer.style.font_family or self.default_font_family,
            layer.style.font_size,
            bold=layer.style.is_bold,
            text_content=layer.content,
        )
        overlay = new_overlay(canvas_size)
        draw = ImageDraw.Draw(overlay)
        draw.text(
            (layer.x, layer.y),
            layer.content,
            font=font,
            fill=hex_to_rgba(layer.style.color),
            anchor="la",
        )
        return overlay

    def _render_image_layer(
        self,
        layer: ImageLayer,
        canvas_size: tuple[int, int],
        outcome: Optional[DecodeOutcome],
    ) -> Optional[Image.Image]:
        if outcome is None:
            return None

        overlay = new_overlay(canvas_size)
        if outcome.failed:
            if self.decode_failure_policy != DecodeFailurePolicy.PLACEHOLDER:
                return None
            draw_placeholder(ImageDraw.Draw(overlay), layer.bounds)
            return overlay

        paste_stretched(overlay, outcome.image, layer.bounds)
        return overlay
