from typing import Dict, Iterable, List, Optional

from ..utils.naming import pascal_case


class TypeNameResolver:
    """
    Резолвер имен типов для консистентности.

    Имя, впервые запрошенное для формы A, остается за ней. Повторный запрос
    того же имени с той же формой получает это же имя, с другой формой -
    числовой суффикс по порядку первой встречи (Pet, Pet2, Pet3).
    """

    def __init__(self, reserved: Iterable[str] = ()):
        self._shapes: Dict[str, Optional[str]] = {name: None for name in reserved}
        self._by_path: Dict[str, str] = {}

    def register(self, path: str, original_name: str, fingerprint: str) -> str:
        """Регистрация схемы с чистым именем"""
        if path in self._by_path:
            return self._by_path[path]

        base = self.clean_type_name(original_name)
        candidate = base
        counter = 2
        while candidate in self._shapes and self._shapes[candidate] != fingerprint:
            candidate = f"{base}{counter}"
            counter += 1

        self._shapes.setdefault(candidate, fingerprint)
        self._by_path[path] = candidate
        return candidate

    def resolve(self, path: str) -> str:
        """Имя типа для канонического пути"""
        try:
            return self._by_path[path]
        except KeyError:
            raise KeyError(f"Для схемы {path} имя не зарегистрировано")

    def paths_for(self, name: str) -> List[str]:
        return [path for path, registered in self._by_path.items() if registered == name]

    @property
    def names(self) -> List[str]:
        return list(dict.fromkeys(self._by_path.values()))

    @staticmethod
    def clean_type_name(name: str) -> str:
        """Очистка имени схемы с правильным PascalCase"""
        return pascal_case(name, fallback="Model")
