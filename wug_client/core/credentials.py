"""
Модуль управления учётными данными WUG.

Источники логина и пароля (по приоритету):
- Явная передача
- Переменные окружения WUG_USERNAME / WUG_PASSWORD
- Системное хранилище (keyring: Windows Credential Manager,
  Secret Service, macOS Keychain)
- Интерактивный ввод (getpass)

Пароль и токены не сохраняются на диск этим модулем.

Пример использования:
    manager = CredentialsManager()
    creds = manager.get_credentials()
    client.connect(creds.username, creds.password, server="wug.local")
"""

import os
import logging
from getpass import getpass
from dataclasses import dataclass, field
from typing import Optional

import keyring
from keyring.errors import KeyringError

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "wug_client"


@dataclass
class Credentials:
    """
    Контейнер для учётных данных.

    Attributes:
        username: Имя пользователя WUG
        password: Пароль (не выводится в repr)
    """
    username: str
    password: str = field(repr=False)


def get_wug_password(username: str) -> Optional[str]:
    """
    Читает пароль пользователя из системного хранилища.

    Args:
        username: Имя пользователя

    Returns:
        str: Пароль или None
    """
    try:
        password = keyring.get_password(KEYRING_SERVICE, username)
    except KeyringError as e:
        logger.warning(f"Ошибка при чтении пароля из системного хранилища: {e}")
        return None
    if password:
        logger.debug(f"Пароль для {username} получен из системного хранилища")
    return password


def set_wug_password(username: str, password: str) -> None:
    """
    Сохраняет пароль в системное хранилище.

    Raises:
        KeyringError: Хранилище недоступно
    """
    keyring.set_password(KEYRING_SERVICE, username, password)
    logger.info(f"Пароль для {username} сохранён в системное хранилище")


class CredentialsManager:
    """
    Менеджер учётных данных.

    Example:
        # Автоматический выбор источника
        creds = CredentialsManager().get_credentials()

        # Явная передача
        creds = CredentialsManager(username="admin", password="secret").get_credentials()
    """

    ENV_USERNAME = "WUG_USERNAME"
    ENV_PASSWORD = "WUG_PASSWORD"

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_keyring: bool = True,
    ):
        self._credentials: Optional[Credentials] = None
        self._username = username
        self.use_keyring = use_keyring

        if username and password:
            self._credentials = Credentials(username=username, password=password)

    def get_credentials(self, interactive: bool = True) -> Credentials:
        """
        Получает учётные данные.

        Порядок проверки:
        1. Уже закэшированные / переданные явно
        2. Переменные окружения
        3. Системное хранилище (keyring)
        4. Интерактивный ввод (если interactive=True)

        Raises:
            ValueError: Если не удалось получить credentials
        """
        if self._credentials:
            return self._credentials

        username = self._username or os.getenv(self.ENV_USERNAME)
        env_password = os.getenv(self.ENV_PASSWORD)

        if username and env_password:
            logger.info("Используем учётные данные из переменных окружения")
            self._credentials = Credentials(username=username, password=env_password)
            return self._credentials

        if username and self.use_keyring:
            stored = get_wug_password(username)
            if stored:
                self._credentials = Credentials(username=username, password=stored)
                return self._credentials

        if interactive:
            logger.info("Запрос учётных данных интерактивно")
            self._credentials = self._prompt_credentials(username)
            return self._credentials

        raise ValueError(
            "Не удалось получить учётные данные. "
            f"Установите {self.ENV_USERNAME} и {self.ENV_PASSWORD} "
            "или включите интерактивный режим."
        )

    def _prompt_credentials(self, username: Optional[str] = None) -> Credentials:
        """Запрашивает учётные данные интерактивно."""
        if not username:
            username = input("Имя пользователя WUG: ").strip()
        password = getpass(f"Пароль для {username}: ")
        return Credentials(username=username, password=password)
