# link_scout/report/csv_report.py

"""
Генерация CSV-отчёта для проекта LinkScout.

Формат: заголовок ``Source URL,Final URL`` и по строке на каждую HTML-страницу.
Значения не экранируются: URL с запятой испортит строку, поэтому такие URL
записываются как есть и о каждом выводится предупреждение.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Union

from link_scout.logger import logger

CSV_HEADER = "Source URL,Final URL"


def check_output_path(output_path: Union[Path, str]) -> Path:
    """
    Проверяет до начала обхода, что CSV можно будет записать.

    Создаёт родительскую папку; бросает OSError, если путь - каталог
    или папка недоступна для записи.
    """
    output = Path(output_path).expanduser()
    if output.is_dir():
        raise IsADirectoryError(f"Путь вывода является каталогом: {output}")
    output.parent.mkdir(parents=True, exist_ok=True)
    if not os.access(output.parent, os.W_OK) or (output.exists() and not os.access(output, os.W_OK)):
        raise PermissionError(f"Нет прав на запись: {output}")
    return output


def render_csv(results: Mapping[str, str], output_path: Union[Path, str]) -> Path:
    """
    Сохраняет соответствие source -> final URL в CSV по указанному пути.

    :param results: словарь исходный URL -> итоговый URL после редиректов
    :param output_path: путь к CSV-файлу
    :return: Path сохранённого файла
    """
    output = Path(output_path).expanduser()
    output.parent.mkdir(parents=True, exist_ok=True)

    rows = [CSV_HEADER]
    for source, final in results.items():
        if "," in source or "," in final:
            logger.warning("URL contains a comma, CSV row will be malformed: %s,%s", source, final)
        rows.append(f"{source},{final}")

    output.write_text("\n".join(rows), encoding="utf-8")
    logger.info("CSV file generated: %s (%d rows)", output, len(results))
    return output
