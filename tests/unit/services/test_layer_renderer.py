"""自由编辑器渲染引擎单元测试."""

import pytest
from PIL import Image

from meme_studio.models.app_settings import DecodeFailurePolicy
from meme_studio.models.layer import ImageLayer, TextLayer
from meme_studio.services.layer_renderer import LayerRenderer
from meme_studio.services.raster import PLACEHOLDER_FILL
from meme_studio.utils.exceptions import ImageDecodeError

CANVAS = (800, 800)
WHITE = (255, 255, 255)
RED = (255, 0, 0)
BLUE = (0, 0, 255)


def image_layer(data: bytes, x=100, y=100, width=200, height=150, **kwargs) -> ImageLayer:
    return ImageLayer(
        image_data=data,
        natural_width=400,
        natural_height=300,
        x=x,
        y=y,
        width=width,
        height=height,
        **kwargs,
    )


class TestLayerRenderer:
    """LayerRenderer 测试类."""

    @pytest.mark.asyncio
    async def test_empty_canvas_is_white(self):
        """测试空图层列表渲染为纯白画布."""
        result = await LayerRenderer().render([], CANVAS)

        assert result.size == CANVAS
        assert result.mode == "RGB"
        assert result.getextrema() == ((255, 255), (255, 255), (255, 255))

    @pytest.mark.asyncio
    async def test_image_stretched_to_layer(self, red_png):
        """测试图片拉伸填满图层尺寸."""
        layer = image_layer(red_png, width=300, height=50)

        result = await LayerRenderer().render([layer], CANVAS)

        assert result.getpixel((110, 110)) == RED
        assert result.getpixel((390, 140)) == RED
        assert result.getpixel((410, 110)) == WHITE
        assert result.getpixel((110, 160)) == WHITE

    @pytest.mark.asyncio
    async def test_z_order(self, red_png, blue_png):
        """测试序列靠后的图层在上层."""
        bottom = image_layer(red_png, x=100, y=100)
        top = image_layer(blue_png, x=200, y=150)

        result = await LayerRenderer().render([bottom, top], CANVAS)

        assert result.getpixel((150, 120)) == RED
        assert result.getpixel((250, 200)) == BLUE

    @pytest.mark.asyncio
    async def test_rotation_about_center(self, red_png):
        """测试绕边界框中心顺时针旋转."""
        layer = image_layer(red_png, x=300, y=350, width=200, height=100, rotation=90)

        result = await LayerRenderer().render([layer], CANVAS)

        # 旋转 90 度后宽高互换，中心 (400, 400) 不变
        assert result.getpixel((400, 400)) == RED
        assert result.getpixel((400, 320)) == RED
        assert result.getpixel((480, 400)) == WHITE

    @pytest.mark.asyncio
    async def test_text_drawn_inside_layer(self):
        """测试文字从图层左上角开始绘制."""
        layer = TextLayer(content="Hello", x=100, y=100, width=200, height=50)

        result = await LayerRenderer().render([layer], CANVAS)

        inside = result.crop((100, 100, 300, 150)).convert("L")
        outside = result.crop((0, 0, 90, 90)).convert("L")
        assert inside.getextrema()[0] < 128
        assert outside.getextrema() == (255, 255)

    @pytest.mark.asyncio
    async def test_input_not_mutated(self, red_png):
        layer = image_layer(red_png, rotation=45)
        before = layer.model_dump()

        await LayerRenderer().render([layer], CANVAS)

        assert layer.model_dump() == before


class TestDecodeFailurePolicy:
    """解码失败策略测试类."""

    @pytest.mark.asyncio
    async def test_skip(self, corrupt_bytes, blue_png):
        """测试默认跳过失败图片，其余图层正常绘制."""
        broken = image_layer(corrupt_bytes, x=0, y=0)
        ok = image_layer(blue_png, x=400, y=400)

        result = await LayerRenderer(DecodeFailurePolicy.SKIP).render([broken, ok], CANVAS)

        assert result.getpixel((50, 50)) == WHITE
        assert result.getpixel((450, 450)) == BLUE

    @pytest.mark.asyncio
    async def test_placeholder(self, corrupt_bytes):
        """测试占位块策略."""
        broken = image_layer(corrupt_bytes, x=100, y=100, width=200, height=150)

        result = await LayerRenderer(DecodeFailurePolicy.PLACEHOLDER).render([broken], CANVAS)

        assert result.getpixel((200, 120)) == PLACEHOLDER_FILL[:3]

    @pytest.mark.asyncio
    async def test_abort(self, corrupt_bytes):
        """测试中止策略抛出异常."""
        broken = image_layer(corrupt_bytes)

        with pytest.raises(ImageDecodeError):
            await LayerRenderer(DecodeFailurePolicy.ABORT).render([broken], CANVAS)
