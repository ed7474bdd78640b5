"""日志工具单元测试."""

import logging

import pytest

from meme_studio.utils.logger import get_log_level, set_log_level, setup_logger


@pytest.fixture(autouse=True)
def restore_log_level():
    """测试后恢复全局日志级别."""
    original = get_log_level()
    yield
    set_log_level(original)


class TestSetLogLevel:
    """全局日志级别测试类."""

    def test_applies_to_package_loggers(self):
        """测试已创建的本项目日志记录器同步新级别."""
        logger = setup_logger("meme_studio.tests.existing")
        other = logging.getLogger("third_party.tests.level")
        other.setLevel(logging.WARNING)

        set_log_level(logging.DEBUG)

        assert get_log_level() == logging.DEBUG
        assert logger.level == logging.DEBUG
        assert other.level == logging.WARNING

    def test_accepts_level_name(self):
        set_log_level("warning")

        assert get_log_level() == logging.WARNING
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_name_falls_back_to_info(self):
        set_log_level("verbose")

        assert get_log_level() == logging.INFO

    def test_new_logger_uses_global_level(self):
        set_log_level(logging.ERROR)

        logger = setup_logger("meme_studio.tests.created_after")

        assert logger.level == logging.ERROR
