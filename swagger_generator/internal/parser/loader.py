"""
Загрузка Swagger/OpenAPI документа из файла или по URL
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Tuple

import httpx
import yaml

from ..errors import DocumentError


logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".json", ".yaml", ".yml")


def _is_yaml(source: str) -> bool:
    return source.lower().split("?")[0].endswith((".yaml", ".yml"))


def _parse(content: str, source: str) -> Dict[str, Any]:
    try:
        if _is_yaml(source):
            document = yaml.safe_load(content)
        else:
            document = json.loads(content)
    except (ValueError, yaml.YAMLError) as e:
        raise DocumentError(f"Не удалось разобрать документ {source}: {e}")

    if not isinstance(document, dict):
        raise DocumentError(f"Документ {source} не является объектом")

    return document


def document_url(url: str) -> str:
    """URL документа; для адреса сервиса добавляется openapi.json"""
    if url.lower().split("?")[0].endswith(DOCUMENT_SUFFIXES):
        return url
    return url + ("" if url.endswith("/") else "/") + "openapi.json"


def load_document(source: str, timeout: float = 30.0) -> Tuple[Dict[str, Any], str]:
    """
    Загрузка документа.

    Args:
        source: путь к локальному файлу (.json/.yaml/.yml) или http(s) URL

    Returns:
        Разобранный документ и базовый URI для внешних $ref

    Raises:
        DocumentError: документ недоступен или не разбирается
    """
    if not source:
        raise DocumentError("Источник документа не указан")

    if source.startswith(("http://", "https://")):
        url = document_url(source)
        logger.debug("Загрузка документа по URL %s", url)
        try:
            response = httpx.get(url, timeout=timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise DocumentError(f"Не удалось загрузить документ {url}: {e}")
        return _parse(response.text, url), url

    if not os.path.exists(source):
        raise DocumentError(f"Файл {source} не найден")

    logger.debug("Чтение документа из файла %s", source)
    try:
        with open(source, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentError(f"Не удалось прочитать {source}: {e}")

    return _parse(content, source), Path(os.path.abspath(source)).as_uri()
