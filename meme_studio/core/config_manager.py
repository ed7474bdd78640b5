"""配置管理器模块."""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from meme_studio.models.app_settings import Settings
from meme_studio.utils.exceptions import ConfigError
from meme_studio.utils.logger import set_log_level, setup_logger

logger = setup_logger(__name__)


class ConfigManager:
    """配置管理器.

    负责应用设置的加载与重新加载。

    Attributes:
        settings: 应用设置
    """

    _instance: Optional["ConfigManager"] = None

    def __new__(cls) -> "ConfigManager":
        """单例模式."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        """初始化配置管理器."""
        if self._initialized:
            return

        self._settings: Optional[Settings] = None
        self._initialized = True
        logger.debug("配置管理器初始化完成")

    @property
    def settings(self) -> Settings:
        """获取应用设置."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    def _load_settings(self) -> Settings:
        """加载应用设置.

        从环境变量与 .env 文件加载。

        Returns:
            Settings 实例
        """
        try:
            settings = Settings()
        except ValidationError as e:
            logger.error(f"加载应用设置失败: {e}")
            raise ConfigError(f"加载应用设置失败: {e}") from e

        set_log_level(settings.log_level)
        logger.debug(
            f"应用设置加载完成: log_level={settings.log_level}, "
            f"debounce={settings.render_debounce_ms}ms"
        )
        return settings

    def override(self, settings: Settings) -> None:
        """直接替换当前设置（嵌入方或测试使用）."""
        self._settings = settings
        set_log_level(settings.log_level)

    def reload(self) -> None:
        """重新加载所有配置."""
        self._settings = None
        logger.info("配置已重新加载")


# 全局配置管理器实例
config_manager = ConfigManager()


def get_config() -> ConfigManager:
    """获取配置管理器实例.

    Returns:
        ConfigManager 单例实例
    """
    return config_manager


def get_settings() -> Settings:
    """获取当前应用设置."""
    return config_manager.settings
