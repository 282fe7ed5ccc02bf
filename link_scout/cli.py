#!/usr/bin/env python3
"""
Точка входа для запуска краулера LinkScout через командную строку.

Команды:
  crawl URL   Обойти сайт и сохранить CSV "Source URL,Final URL"
  config      Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (необязательно)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда crawl опции:
  -c, --concurrency N   Число одновременных запросов (default: 3)
  -d, --delay MS        Пауза перед каждой новой ссылкой, мс (default: 1000)
  -t, --timeout MS      Таймаут запроса, мс (default: 10000)
  -o, --output PATH     Путь к CSV (default: ~/Desktop/crawled-urls.csv)
  --debug               Подробное логирование
  --pacing MODE         discovery | global
  --max-pages N         Лимит страниц
  --scan-timeout SEC    Таймаут всего обхода (секунд)

Пример:
  link-scout crawl https://example.com -c 5 -d 500 -o urls.csv
"""
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from link_scout import __version__
from link_scout.config import load_config
from link_scout.engine import run_crawl
from link_scout.logger import DEFAULT_FORMAT, configure, logger

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _build_config(ctx, **overrides):
    try:
        return load_config(ctx.obj['config_path'], **overrides)
    except ValidationError as e:
        print_error(f'Некорректная конфигурация: {e}')
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='LinkScout, version %(version)s')
@click.option(
    '--config', 'config_path',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML или JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """LinkScout: обход внутренних ссылок сайта и карта редиректов."""
    configure(level=log_level, log_file=log_file, log_format=log_format)
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['log_level'] = log_level


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--concurrency', '-c', type=int, default=None, help='Число одновременных запросов [default: 3]')
@click.option('--delay', '-d', 'delay_ms', type=int, default=None, help='Пауза перед каждой новой ссылкой, мс [default: 1000]')
@click.option('--timeout', '-t', 'timeout_ms', type=int, default=None, help='Таймаут запроса, мс [default: 10000]')
@click.option(
    '--output', '-o', 'output_path',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Путь к CSV [default: ~/Desktop/crawled-urls.csv]'
)
@click.option('--debug', is_flag=True, default=False, help='Подробное логирование')
@click.option('--user-agent', 'user_agent', default=None, help='Заголовок User-Agent')
@click.option('--pacing', type=click.Choice(['discovery', 'global']), default=None, help='Режим паузы между запросами')
@click.option('--max-pages', 'max_pages', type=int, default=None, help='Лимит страниц')
@click.option('--scan-timeout', 'scan_timeout', type=float, default=None, help='Таймаут всего обхода (секунд)')
@click.pass_context
def crawl(ctx, url, concurrency, delay_ms, timeout_ms, output_path, debug, user_agent, pacing, max_pages, scan_timeout):
    """Обойти сайт начиная с URL и сохранить соответствие source -> final URL."""
    cfg = _build_config(
        ctx,
        seed_url=url,
        concurrency=concurrency,
        delay_ms=delay_ms,
        timeout_ms=timeout_ms,
        output_path=output_path,
        debug=debug or None,
        user_agent=user_agent,
        pacing=pacing,
        max_pages=max_pages,
    )
    if cfg.debug:
        logger.setLevel('DEBUG')

    try:
        results = run_crawl(cfg, scan_timeout=scan_timeout)
    except (OSError, ValueError) as e:
        print_error(f'Ошибка запуска обхода: {e}')

    click.echo(f'Crawl completed! {len(results)} URLs written to {cfg.output_path}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.argument('url', required=False)
@click.pass_context
def show_config(ctx, url):
    """Показать итоговую конфигурацию в JSON (URL можно взять из файла конфига)."""
    cfg = _build_config(ctx, seed_url=url)
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
