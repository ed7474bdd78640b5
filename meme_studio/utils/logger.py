"""日志工具模块.

提供应用日志记录功能，支持控制台输出和文件记录。

Features:
    - 控制台彩色输出
    - 文件日志轮转
    - 全局日志级别管理
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from meme_studio.utils.constants import LOG_DIR

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_FILE_BACKUP_COUNT = 5

_log_level: int = logging.INFO
_root_configured: bool = False


class ColoredFormatter(logging.Formatter):
    """彩色日志格式化器."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """格式化日志记录."""
        # 复制一份，避免颜色码污染文件日志
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelno, "")
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _file_handler(filename: str, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        LOG_DIR / filename,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def _configure_root_logger() -> None:
    """配置根日志记录器."""
    global _root_configured
    if _root_configured:
        return

    root = logging.getLogger()
    root.setLevel(_log_level)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(_log_level)
    console.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    root.addHandler(console)

    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        root.addHandler(_file_handler("app.log", _log_level))
        root.addHandler(_file_handler("error.log", logging.ERROR))
    except OSError as e:
        # 只读环境下退化为仅控制台输出
        root.warning(f"无法创建日志文件，仅输出到控制台: {e}")

    _root_configured = True


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """设置并返回日志记录器.

    Args:
        name: 日志记录器名称，通常使用 __name__
        level: 日志级别，默认使用全局配置

    Returns:
        配置好的日志记录器
    """
    _configure_root_logger()
    logger = logging.getLogger(name)
    logger.setLevel(level if level is not None else _log_level)
    return logger


def set_log_level(level: int | str) -> None:
    """设置全局日志级别."""
    global _log_level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    _log_level = level

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        if handler.level != logging.ERROR:
            handler.setLevel(level)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("meme_studio"):
            logging.getLogger(name).setLevel(level)


def get_log_level() -> int:
    """获取当前全局日志级别."""
    return _log_level
