# safehome/common/__init__.py
"""
Общие утилиты, константы, ошибки и логгер.
"""

from safehome.common.constants import TypeMsg
from safehome.common.logger import get_logger, log_debug, log_error, log_info, log_warning

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "TypeMsg",
]
