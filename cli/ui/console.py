"""
cli/ui/console.py - Rich 콘솔 유틸리티

일관된 콘솔 출력과 로깅 설정을 위한 함수들
"""

from __future__ import annotations

import logging
import platform
from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from core.config import LogConfig

# botocore 노이즈 로그 제한
NOISY_LOGGERS = ("botocore", "boto3", "urllib3")


def get_console(stderr: bool = False) -> Console:
    """Rich Console 인스턴스를 생성하고 반환합니다."""
    is_windows = platform.system().lower() == "windows"

    return Console(
        stderr=stderr,
        color_system="auto",
        highlight=True,
        soft_wrap=True,
        markup=True,
        emoji=not is_windows,
    )


# 전역 콘솔 인스턴스 (결과는 stdout, 로그는 stderr)
console = get_console()
err_console = get_console(stderr=True)


def setup_logging(config: LogConfig | None = None) -> None:
    """루트 logger 설정

    config.rich가 True면 RichHandler(stderr), 아니면 표준 StreamHandler를 사용합니다.
    여러 번 호출해도 핸들러는 하나만 유지됩니다.
    """
    config = config or LogConfig.from_env()
    root = logging.getLogger()

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler: logging.Handler
    if config.rich:
        handler = RichHandler(console=err_console, rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt=config.date_format))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(config.format, datefmt=config.date_format))

    root.addHandler(handler)
    root.setLevel(config.level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# =============================================================================
# 표준 출력 스타일
# =============================================================================

SYMBOL_SUCCESS = "✓"
SYMBOL_ERROR = "✗"
SYMBOL_WARNING = "!"


def print_success(message: str) -> None:
    console.print(f"[green]{SYMBOL_SUCCESS} {message}[/green]")


def print_error(message: str) -> None:
    err_console.print(f"[red]{SYMBOL_ERROR} {message}[/red]")


def print_warning(message: str) -> None:
    console.print(f"[yellow]{SYMBOL_WARNING} {message}[/yellow]")


def print_table(
    title: str,
    columns: Sequence[tuple[str, str]],
    rows: Sequence[Sequence[Any]],
) -> None:
    """간단한 테이블 출력

    Args:
        title: 테이블 제목
        columns: (헤더, 스타일) 목록
        rows: 행 목록
    """
    table = Table(title=title, show_header=True)
    for header, style in columns:
        table.add_column(header, style=style)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)
