"""Pytest 配置和共享 fixtures."""

from __future__ import annotations

import io
from typing import Callable

import pytest
from PIL import Image

from meme_studio.core.config_manager import config_manager
from meme_studio.models.app_settings import Settings


def make_png(
    size: tuple[int, int] = (400, 300),
    color: tuple = (255, 0, 0, 255),
    mode: str = "RGBA",
) -> bytes:
    """生成纯色 PNG 字节数据."""
    img = Image.new(mode, size, color)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def open_png(data: bytes) -> Image.Image:
    """解码 PNG 字节数据."""
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    """PNG 生成函数."""
    return make_png


@pytest.fixture
def png_decoder() -> Callable[[bytes], Image.Image]:
    """PNG 解码函数."""
    return open_png


@pytest.fixture
def red_png() -> bytes:
    """400x300 红色图片."""
    return make_png((400, 300), (255, 0, 0, 255))


@pytest.fixture
def blue_png() -> bytes:
    """300x300 蓝色图片."""
    return make_png((300, 300), (0, 0, 255, 255))


@pytest.fixture
def corrupt_bytes() -> bytes:
    """无法解码的数据."""
    return b"this is not an image"


@pytest.fixture
def settings() -> Settings:
    """不读取 .env 的默认设置."""
    return Settings(_env_file=None)


@pytest.fixture(autouse=True)
def reset_config_manager():
    """每个测试后恢复全局配置."""
    yield
    config_manager._settings = None
