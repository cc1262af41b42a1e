from dataclasses import fields, is_dataclass
from typing import Any, TypeVar

T = TypeVar("T")

class EntityMixin:
    @classmethod
    def from_model(cls: type[T], model: Any, **overrides: Any) -> T:
        """
        Cria uma entidade a partir de um modelo Django.
        Usa os campos da dataclass para extrair atributos do model;
        `overrides` substitui campos que não são atributos diretos
        (coleções filhas, por exemplo).
        """
        if not is_dataclass(cls):
            raise TypeError(f"{cls.__name__} deve ser um dataclass")
        data: dict[str, Any] = {}
        for f in fields(cls):
            if f.name in overrides:
                data[f.name] = overrides[f.name]
            elif hasattr(model, f.name):
                data[f.name] = getattr(model, f.name)
        return cls(**data)
