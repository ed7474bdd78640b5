"""临时资源管理单元测试."""

import pytest
from PIL import Image

from meme_studio.core.resources import RESOURCE_URL_SCHEME, ResourceTracker
from meme_studio.utils.exceptions import ResourceReleasedError


@pytest.fixture
def tracker() -> ResourceTracker:
    return ResourceTracker()


class TestResourceTracker:
    """ResourceTracker 测试类."""

    def test_create(self, tracker):
        handle = tracker.create("preview")

        assert handle.url.startswith(f"{RESOURCE_URL_SCHEME}preview/")
        assert tracker.live_count == 1
        assert tracker.is_live(handle.url)
        assert tracker.get(handle.url) is handle

    def test_unique_urls(self, tracker):
        urls = {tracker.create("preview").url for _ in range(20)}

        assert len(urls) == 20

    def test_release_exactly_once(self, tracker):
        """测试只能释放一次."""
        handle = tracker.create("preview")

        tracker.release(handle.url)

        assert handle.released
        assert tracker.live_count == 0
        with pytest.raises(ResourceReleasedError):
            tracker.release(handle.url)

    def test_release_closes_image(self, tracker):
        """测试释放时关闭持有的图片."""
        handle = tracker.create("thumbnail", Image.new("RGB", (4, 4)))
        assert handle.image is not None

        tracker.release(handle.url)

        assert handle.image is None

    def test_release_unknown(self, tracker):
        with pytest.raises(ResourceReleasedError):
            tracker.release("preview://nothing")

    def test_release_all(self, tracker):
        for _ in range(3):
            tracker.create("preview")

        assert tracker.release_all() == 3
        assert tracker.live_count == 0
