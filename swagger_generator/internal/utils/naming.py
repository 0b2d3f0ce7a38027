"""Утилиты для работы с именами типов, функций и параметров"""

import re
from typing import Iterable, Set


# Зарезервированные слова JavaScript/TypeScript
JS_RESERVED = {
    "break",
    "case",
    "catch",
    "class",
    "const",
    "continue",
    "debugger",
    "default",
    "delete",
    "do",
    "else",
    "enum",
    "export",
    "extends",
    "false",
    "finally",
    "for",
    "function",
    "if",
    "import",
    "in",
    "instanceof",
    "new",
    "null",
    "return",
    "super",
    "switch",
    "this",
    "throw",
    "true",
    "try",
    "typeof",
    "var",
    "void",
    "while",
    "with",
    "yield",
    "let",
    "static",
    "implements",
    "interface",
    "package",
    "private",
    "protected",
    "public",
    "await",
    "arguments",
    "eval",
}

# Имена, занятые сгенерированным рантаймом сервиса
RUNTIME_NAMES = ("axios", "client", "BASE_URL", "buildQuery", "buildHeaders")

# Глобальные объекты, которые вызывает рантайм и тело функции
GLOBAL_NAMES = ("Array", "Object", "String", "encodeURIComponent")

# Локальные имена тела сгенерированной функции
LOCAL_NAMES = ("body", "config", "url", "response") + GLOBAL_NAMES

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def split_words(name: str) -> list:
    """Разбиение имени на части по любым не буквенно-цифровым символам"""
    return [part for part in re.split(r"[^A-Za-z0-9]+", name) if part]


def pascal_case(name: str, fallback: str = "Model") -> str:
    """
    PascalCase без потери регистра внутри частей.

    Examples:
        >>> pascal_case("pet-input")
        'PetInput'
        >>> pascal_case("HTTPValidationError")
        'HTTPValidationError'
        >>> pascal_case("Page[User]")
        'PageUser'
    """
    result = "".join(part[0].upper() + part[1:] for part in split_words(name))
    if not result:
        return fallback
    if result[0].isdigit():
        result = f"{fallback}{result}"
    return result


def camel_case(name: str, fallback: str = "param") -> str:
    """camelCase: первая часть с маленькой буквы"""
    result = pascal_case(name, fallback="")
    if not result:
        return fallback
    result = result[0].lower() + result[1:]
    if result[0].isdigit():
        result = f"{fallback}{result[0].upper()}{result[1:]}"
    return result


def clean_identifier(name: str, fallback: str = "param") -> str:
    """
    Идентификатор JS из произвольного имени.

    Корректные имена остаются как есть, остальные приводятся к camelCase,
    зарезервированные слова получают суффикс "_".

    Examples:
        >>> clean_identifier("pet_id")
        'pet_id'
        >>> clean_identifier("X-Request-ID")
        'xRequestID'
        >>> clean_identifier("delete")
        'delete_'
    """
    if not _IDENTIFIER_RE.match(name or ""):
        name = camel_case(name or "", fallback=fallback)

    if name in JS_RESERVED:
        name = f"{name}_"

    return name


def unique_name(base: str, used: Set[str]) -> str:
    """
    Первое свободное имя: base, base2, base3...

    Найденное имя добавляется в used.
    """
    name = base
    counter = 2
    while name in used:
        name = f"{base}{counter}"
        counter += 1

    used.add(name)
    return name


def is_identifier(name: str, reserved: Iterable[str] = JS_RESERVED) -> bool:
    return bool(_IDENTIFIER_RE.match(name)) and name not in set(reserved)
