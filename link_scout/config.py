"""
Модуль для загрузки и валидации конфигурации краулера LinkScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, HttpUrl

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; LinkScoutBot/1.0;)"
DEFAULT_OUTPUT_NAME = "crawled-urls.csv"


def default_output_path() -> Path:
    """Путь по умолчанию для CSV: папка Desktop в домашнем каталоге пользователя."""
    return Path.home() / "Desktop" / DEFAULT_OUTPUT_NAME


class CrawlConfig(BaseModel):
    """Конфигурация одного запуска обхода сайта."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    seed_url: HttpUrl = Field(..., description="Стартовый URL; его хост считается внутренним.")
    concurrency: int = Field(3, ge=1, description="Число одновременных запросов.")
    delay_ms: int = Field(1000, ge=0, description="Пауза перед отправкой каждой новой ссылки (мс).")
    timeout_ms: int = Field(10000, ge=0, description="Таймаут одного запроса (мс), 0 - без ограничения.")
    output_path: Path = Field(default_factory=default_output_path, description="Путь к CSV-файлу.")
    debug: bool = Field(False, description="Подробное логирование.")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    max_redirects: int = Field(5, ge=0, description="Максимум переходов по редиректам.")
    pacing: Literal["discovery", "global"] = Field(
        "discovery", description="discovery: пауза на каждую найденную ссылку; global: общий интервал между запросами."
    )
    max_pages: Optional[int] = Field(None, ge=1, description="Лимит принятых в обход URL.")
    progress_interval: float = Field(5.0, gt=0, description="Период вывода прогресса (секунд).")

    @property
    def seed(self) -> str:
        return str(self.seed_url)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def read_config_file(path: Union[str, Path]) -> dict[str, Any]:
    """Читает YAML или JSON и возвращает сырые настройки без проверки."""
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")


def load_config(path: Union[str, Path, None] = None, **overrides: Any) -> CrawlConfig:
    """
    Собирает CrawlConfig из файла (если указан) и явных переопределений.
    Переопределения со значением None игнорируются, чтобы не затирать значения из файла.
    """
    data: dict[str, Any] = read_config_file(path) if path is not None else {}
    data.update({k: v for k, v in overrides.items() if v is not None})
    return CrawlConfig(**data)
