"""link_scout.report: вывод результатов обхода (CSV) и прогресса."""

from link_scout.report.csv_report import CSV_HEADER, check_output_path, render_csv
from link_scout.report.progress import ProgressReporter, format_progress

__all__ = ["CSV_HEADER", "check_output_path", "render_csv", "ProgressReporter", "format_progress"]
