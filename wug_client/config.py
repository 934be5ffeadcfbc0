"""
Загрузчик конфигурации из config.yaml.

Порядок: значения по умолчанию -> YAML -> переменные окружения.
Итог валидируется pydantic схемой (core/config_schema.py).

Предоставляет доступ к настройкам через точку:
    config.wug.server
    config.wug.timeout
    config.batch.max_batch_size
"""

import os
import logging
from typing import Any, Optional

import yaml

from .core.config_schema import AppConfig, validate_config, get_default_config
from .core.exceptions import ConfigError
from .core.logging import LogConfig, setup_logging_from_config

logger = logging.getLogger(__name__)

# Путь к файлу конфигурации рядом с пакетом
CONFIG_FILE = os.path.join(os.path.dirname(__file__), "config.yaml")

SEARCH_PATHS = [
    "config.yaml",
    "config.yml",
    ".wug_client.yaml",
    CONFIG_FILE,
]

# Переменная окружения -> (секция, ключ)
ENV_MAPPING = {
    "WUG_SERVER": ("wug", "server"),
    "WUG_PROTOCOL": ("wug", "protocol"),
    "WUG_PORT": ("wug", "port"),
    "WUG_USERNAME": ("wug", "username"),
    "WUG_VERIFY_SSL": ("wug", "verify_ssl"),
    "WUG_TIMEOUT": ("wug", "timeout"),
    "WUG_LOG_LEVEL": ("logging", "level"),
}


class ConfigSection:
    """Секция конфигурации с доступом через точку."""

    def __init__(self, data: dict = None):
        self._data = data or {}

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            return super().__getattribute__(name)
        value = self._data.get(name)
        if isinstance(value, dict):
            return ConfigSection(value)
        return value

    def get(self, key: str, default: Any = None) -> Any:
        """Получить значение с дефолтом."""
        return self._data.get(key, default)

    def to_dict(self) -> dict:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"ConfigSection({self._data})"


class Config:
    """
    Главный класс конфигурации.

    Пример:
        config.wug.server         # "wug.example.com"
        config.wug.port           # 9644
        config.batch.max_batch_size  # 499

        config.setup_logging()    # handlers из секции logging
    """

    def __init__(self, config_file: Optional[str] = None):
        self.config_file: Optional[str] = None
        self._data = self._get_defaults()
        self._load_yaml(config_file)
        self._load_env()
        self._validate()

    def _get_defaults(self) -> dict:
        """Значения по умолчанию из pydantic схемы."""
        return get_default_config().model_dump()

    def _load_yaml(self, config_file: Optional[str] = None) -> None:
        """Загружает настройки из YAML файла."""
        if not config_file:
            for path in SEARCH_PATHS:
                if os.path.exists(path):
                    config_file = path
                    break

        if not config_file:
            return
        if not os.path.exists(config_file):
            raise ConfigError("Файл конфигурации не найден", config_file=config_file)

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Некорректный YAML: {e}", config_file=config_file) from e

        if not isinstance(yaml_data, dict):
            raise ConfigError("Корень конфигурации должен быть словарём", config_file=config_file)

        self._merge_dict(self._data, yaml_data)
        self.config_file = config_file
        logger.debug(f"Конфигурация загружена из {config_file}")

    def _load_env(self) -> None:
        """Загружает настройки из переменных окружения."""
        for env_name, (section, key) in ENV_MAPPING.items():
            value = os.getenv(env_name)
            if value:
                self._data.setdefault(section, {})[key] = value

    def _validate(self) -> None:
        """Валидирует и нормализует итоговый словарь."""
        validated = validate_config(self._data, config_file=self.config_file or "config.yaml")
        self._data = validated.model_dump()

    def _merge_dict(self, base: dict, override: dict) -> None:
        """Рекурсивно мержит словари."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_dict(base[key], value)
            else:
                base[key] = value

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            return super().__getattribute__(name)
        value = self._data.get(name)
        if isinstance(value, dict):
            return ConfigSection(value)
        return value

    def to_app_config(self) -> AppConfig:
        """Валидированная pydantic модель (для WugClient(config=...))."""
        return validate_config(self._data, config_file=self.config_file or "config.yaml")

    def setup_logging(self) -> LogConfig:
        """
        Применяет секцию logging к корневому логгеру.

        Returns:
            LogConfig: Применённая конфигурация логирования
        """
        log_config = LogConfig.from_dict(self.logging.to_dict())
        setup_logging_from_config(log_config)
        logger.debug(f"Логирование настроено: уровень {logging.getLevelName(log_config.level)}")
        return log_config

    def reload(self, config_file: Optional[str] = None) -> None:
        """Перезагружает конфигурацию."""
        self.config_file = None
        self._data = self._get_defaults()
        self._load_yaml(config_file)
        self._load_env()
        self._validate()


def load_config(config_file: Optional[str] = None) -> Config:
    """
    Загружает конфигурацию из файла.

    Args:
        config_file: Путь к YAML файлу (опционально, иначе поиск по SEARCH_PATHS)

    Returns:
        Config: Объект конфигурации

    Raises:
        ConfigError: Файл не найден, некорректный YAML или значения
    """
    return Config(config_file)
