"""Resolve cart item associations to model classes."""
import importlib
from typing import Any, Callable

from .exceptions import UnknownModelError

ModelResolver = Callable[[type, Any], Any]


def import_model(path: str) -> type:
    """
    Import a class from a dotted path such as "shop.models.Product".

    Raises:
        UnknownModelError: If the path does not name an importable class
    """
    parts = path.split(".") if isinstance(path, str) else []

    for split in range(len(parts) - 1, 0, -1):
        try:
            target: Any = importlib.import_module(".".join(parts[:split]))
        except ImportError:
            continue
        try:
            for attr in parts[split:]:
                target = getattr(target, attr)
        except AttributeError:
            break
        if isinstance(target, type):
            return target
        break

    raise UnknownModelError(path)


def model_path(model: Any) -> str:
    """
    Dotted path for a class, an instance, or an already dotted string.

    Strings are validated by importing them.
    """
    if isinstance(model, str):
        import_model(model)
        return model
    cls = model if isinstance(model, type) else type(model)
    return f"{cls.__module__}.{cls.__qualname__}"


def find_model(model_cls: type, identifier: Any) -> Any:
    """Default resolver: call the model's `find` classmethod."""
    finder = getattr(model_cls, "find", None)
    if finder is None:
        raise TypeError(f"{model_cls.__qualname__} has no find() method")
    return finder(identifier)
