"""Rule package that ensures registration on import."""
from __future__ import annotations

from importlib import import_module

# Registration order is the order findings are emitted in.
_MODULES = [
    "overactive_bladder",
    "stress_urinary_incontinence",
    "urge_incontinence",
    "nocturia",
    "polyuria",
    "incomplete_emptying",
]

for _module in _MODULES:
    import_module(f"{__name__}.{_module}")

__all__ = list(_MODULES)
