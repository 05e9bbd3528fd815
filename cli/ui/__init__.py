# cli/ui - 콘솔 출력 컴포넌트 (rich)
"""
콘솔 출력 모듈

CLI 전용 UI 컴포넌트들 (rich 콘솔, 테이블, 로깅 핸들러)
"""

from .console import (
    SYMBOL_ERROR,
    SYMBOL_INFO,
    SYMBOL_SUCCESS,
    SYMBOL_WARNING,
    build_instance_table,
    console,
    get_console,
    get_logger,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "SYMBOL_ERROR",
    "SYMBOL_INFO",
    "SYMBOL_SUCCESS",
    "SYMBOL_WARNING",
    "build_instance_table",
    "console",
    "get_console",
    "get_logger",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
