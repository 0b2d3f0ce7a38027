"""Утилиты для генератора"""

from .naming import (
    GLOBAL_NAMES,
    JS_RESERVED,
    LOCAL_NAMES,
    RUNTIME_NAMES,
    camel_case,
    clean_identifier,
    is_identifier,
    pascal_case,
    split_words,
    unique_name,
)

__all__ = [
    "GLOBAL_NAMES",
    "JS_RESERVED",
    "LOCAL_NAMES",
    "RUNTIME_NAMES",
    "camel_case",
    "clean_identifier",
    "is_identifier",
    "pascal_case",
    "split_words",
    "unique_name",
]
