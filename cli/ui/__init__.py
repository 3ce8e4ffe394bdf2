# cli/ui - 콘솔 출력 (rich)
"""
콘솔 출력 모듈
"""

from .console import (
    console,
    err_console,
    get_console,
    print_error,
    print_success,
    print_table,
    print_warning,
    setup_logging,
)

__all__: list[str] = [
    "console",
    "err_console",
    "get_console",
    "setup_logging",
    "print_success",
    "print_error",
    "print_warning",
    "print_table",
]
