"""
Pydantic схемы для валидации config.yaml.

Ошибки валидации выбрасывают ConfigError.

Пример использования:
    from wug_client.core.config_schema import validate_config

    config_dict = yaml.safe_load(open("config.yaml"))
    validated = validate_config(config_dict)  # raises ConfigError on failure
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

from .exceptions import ConfigError


class WugConfig(BaseModel):
    """Настройки подключения к WUG REST API."""
    server: str = ""
    protocol: str = Field(default="https", pattern="^(http|https)$")
    port: int = Field(default=9644, ge=1, le=65535)
    username: str = ""
    verify_ssl: bool = True
    timeout: int = Field(default=30, ge=1, le=600)
    max_retries: int = Field(default=3, ge=1, le=10)
    transport_retries: int = Field(default=2, ge=0, le=10)
    retry_delay: float = Field(default=2, ge=0, le=60)
    refresh_threshold_minutes: int = Field(default=5, ge=0, le=120)
    page_size: int = Field(default=250, ge=1, le=1000)
    auto_refresh: bool = True

    @field_validator("server")
    @classmethod
    def validate_server(cls, v: str) -> str:
        """Сервер без схемы или с http(s)://."""
        v = v.strip()
        if "://" in v and not v.startswith(("http://", "https://")):
            raise PydanticCustomError(
                "invalid_server",
                "WUG server должен быть hostname или начинаться с http:// или https://",
            )
        return v.rstrip("/")


class BatchConfig(BaseModel):
    """Настройки bulk операций."""
    max_batch_size: int = Field(default=499, ge=1, le=500)


class LoggingConfig(BaseModel):
    """Настройки логирования."""
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    json_format: bool = False
    console: bool = True
    file_path: Optional[str] = None
    rotation: str = Field(default="size", pattern="^(size|time|none)$")
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)  # min 1KB
    backup_count: int = Field(default=5, ge=1, le=100)
    when: str = "midnight"
    interval: int = Field(default=1, ge=1)


class AppConfig(BaseModel):
    """Полная конфигурация."""
    wug: WugConfig = Field(default_factory=WugConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    debug: bool = False


def validate_config(config_dict: dict, config_file: str = "config.yaml") -> AppConfig:
    """
    Валидирует словарь конфигурации.

    Args:
        config_dict: Словарь из YAML
        config_file: Имя файла для сообщения об ошибке

    Returns:
        AppConfig: Валидированная конфигурация

    Raises:
        ConfigError: При ошибке валидации
    """
    try:
        return AppConfig(**(config_dict or {}))
    except Exception as e:
        error_msg = str(e)
        key = None
        if hasattr(e, "errors"):
            errors = e.errors()
            if errors:
                first_error = errors[0]
                key = ".".join(str(x) for x in first_error.get("loc", []))
                msg = first_error.get("msg", "Unknown error")
                error_msg = f"{key}: {msg}"

        raise ConfigError(
            message=f"Ошибка валидации конфигурации: {error_msg}",
            config_file=config_file,
            key=key,
        ) from e


def get_default_config() -> AppConfig:
    """Возвращает конфигурацию по умолчанию."""
    return AppConfig()
