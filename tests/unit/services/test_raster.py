"""栅格化公共函数单元测试."""

import pytest
from PIL import Image

from meme_studio.models.app_settings import DecodeFailurePolicy
from meme_studio.services.raster import blend_rect, decode_all
from meme_studio.utils.exceptions import ImageDecodeError
from meme_studio.utils.geometry import Rect


class TestDecodeAll:
    """并发解码测试类."""

    @pytest.mark.asyncio
    async def test_preserves_order(self, red_png, blue_png, corrupt_bytes):
        outcomes = await decode_all(
            [(red_png, "red"), (corrupt_bytes, "bad"), (blue_png, "blue")]
        )

        assert [o.failed for o in outcomes] == [False, True, False]
        assert outcomes[0].image.size == (400, 300)
        assert outcomes[2].image.mode == "RGBA"
        assert isinstance(outcomes[1].error, ImageDecodeError)

    @pytest.mark.asyncio
    async def test_abort(self, corrupt_bytes):
        with pytest.raises(ImageDecodeError):
            await decode_all([(corrupt_bytes, "bad")], DecodeFailurePolicy.ABORT)

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await decode_all([]) == []


class TestBlendRect:
    """半透明矩形测试类."""

    def test_alpha_blended(self):
        """测试矩形按不透明度混合而不是覆盖."""
        canvas = Image.new("RGBA", (20, 20), (255, 255, 255, 255))

        result = blend_rect(canvas, Rect(0, 0, 10, 10), (0, 0, 0, 128))

        r, g, b, a = result.getpixel((5, 5))
        assert 120 <= r <= 135
        assert a == 255
        assert result.getpixel((15, 15)) == (255, 255, 255, 255)
