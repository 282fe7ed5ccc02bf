"""link_scout.engine: запуск обхода и запись результатов, в том числе частичных."""

from __future__ import annotations

import asyncio
from typing import Dict, Optional

from link_scout.config import CrawlConfig
from link_scout.crawler.crawler import AsyncCrawler
from link_scout.logger import logger
from link_scout.report.csv_report import check_output_path, render_csv
from link_scout.report.progress import ProgressReporter

__all__ = ["Engine", "run_crawl"]


class Engine:
    """Фасад для CLI и тестов: проверки перед стартом, запуск обхода и сохранение CSV."""

    def __init__(self, config: CrawlConfig) -> None:
        """Ошибки конфигурации (некорректный seed, путь вывода) возникают здесь, до обхода."""
        self.config = config
        self.output_path = check_output_path(config.output_path)
        self.crawler = AsyncCrawler(config)

    async def crawl(self) -> Dict[str, str]:
        """Обходит сайт, периодически выводя прогресс."""
        async with self.crawler as crawler:
            async with ProgressReporter(crawler.progress, self.config.progress_interval):
                return await crawler.crawl()

    def run(self, scan_timeout: Optional[float] = None) -> Dict[str, str]:
        """
        Запускает обход в собственном event loop и всегда пишет CSV.

        При таймауте всего обхода или Ctrl-C сохраняется то, что уже найдено.
        """
        try:
            if scan_timeout:
                asyncio.run(asyncio.wait_for(self.crawl(), timeout=scan_timeout))
            else:
                asyncio.run(self.crawl())
        except asyncio.TimeoutError:
            logger.warning("Crawl did not finish within %s seconds, writing partial results", scan_timeout)
        except KeyboardInterrupt:
            logger.warning("Crawl interrupted, writing partial results")
        finally:
            results = self.crawler.frontier.results
            render_csv(results, self.output_path)
        return results


def run_crawl(config: CrawlConfig, scan_timeout: Optional[float] = None) -> Dict[str, str]:
    """Обходит сайт по конфигурации и возвращает соответствие source -> final URL."""
    return Engine(config).run(scan_timeout)
