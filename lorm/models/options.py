"""
Lorm Model Options — parsed from the inner Meta class.
"""

from __future__ import annotations

from typing import Optional, Union

from .dialects import Dialect

__all__ = ["Options"]


class Options:
    """
    Parsed model options from inner Meta class.

    Attributes:
        table: Explicit table name (``None`` derives it from the class name)
        dialect: Backend dialect (``None`` uses the configured default)
        abstract: Abstract models contribute fields but are never compiled
    """

    __slots__ = ("table", "dialect", "abstract")

    def __init__(self, model_name: str, meta: Optional[type] = None):
        self.table: Optional[str] = getattr(meta, "table", None) if meta else None
        self.dialect: Union[Dialect, str, None] = getattr(meta, "dialect", None) if meta else None
        # Meta.abstract is not inherited: subclasses of an abstract model are concrete
        self.abstract: bool = bool(getattr(meta, "abstract", False)) if meta else False

    def __repr__(self) -> str:
        return f"<Options: table={self.table!r} dialect={self.dialect!r} abstract={self.abstract}>"
