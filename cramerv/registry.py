"""Registry of named Cramér's V implementations for benchmarking."""

from __future__ import annotations

from importlib import import_module
from typing import Any, Callable, Dict

from .reference import Implementation, cramer_v_crosstab, cramer_v_scipy
from .stats import cramer_v


class ImplementationRegistry:
    """Maps implementation names to callables taking two label sequences."""

    def __init__(self) -> None:
        self.implementations: Dict[str, Implementation] = {}

    def register(self, name: str, func: Implementation) -> None:
        """Register an implementation under a name."""

        self.implementations[name] = func

    def get(self, name: str) -> Implementation:
        """Look up an implementation, raising KeyError with the known names."""

        try:
            return self.implementations[name]
        except KeyError:
            known = ", ".join(sorted(self.implementations)) or "<none>"
            raise KeyError(f"unknown implementation {name!r} (known: {known})") from None

    def names(self) -> list[str]:
        return list(self.implementations)

    def load_entrypoint(self, dotted_path: str) -> Callable[..., Any]:
        """Dynamically load a callable via dotted path."""

        module_name, _, attr = dotted_path.rpartition(".")
        if not module_name:
            raise ValueError(f"expected a dotted path like 'package.module.func', got {dotted_path!r}")
        module = import_module(module_name)
        return getattr(module, attr)

    def register_entrypoint(self, name: str, dotted_path: str) -> Implementation:
        """Load a callable by dotted path and register it under ``name``."""

        func = self.load_entrypoint(dotted_path)
        if not callable(func):
            raise TypeError(f"{dotted_path} is not callable")
        self.register(name, func)
        return func


def default_registry() -> ImplementationRegistry:
    """Registry holding the optimized routine and both reference variants."""

    registry = ImplementationRegistry()
    registry.register("optimized", cramer_v)
    registry.register("crosstab", cramer_v_crosstab)
    registry.register("scipy", cramer_v_scipy)
    return registry


registry = default_registry()

__all__ = ["registry", "default_registry", "ImplementationRegistry", "Implementation"]
