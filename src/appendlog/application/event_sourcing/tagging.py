"""Application event sourcing – TypeTagger.

Produces the ``stream_type`` / ``event_type`` strings handed to the append
coordinator. Tags are explicit registrations; unregistered classes fall back
to their dotted ``module.QualName``. The coordinator itself only ever sees the
resulting strings.
"""

from __future__ import annotations

from typing import Any


class TypeTagger:
    """Two-way mapping between classes and type tags.

    Example::

        tagger = TypeTagger()
        tagger.register(OrderCreated, "OrderCreated")
        tagger.tag_for(OrderCreated(...))   # "OrderCreated"
        tagger.resolve("OrderCreated")      # OrderCreated
    """

    def __init__(self) -> None:
        self._tags: dict[type, str] = {}
        self._types: dict[str, type] = {}

    def register(self, cls: type, tag: str | None = None) -> str:
        """Register *cls* under *tag* (default: its dotted name) and return the tag."""
        tag = tag or self.default_tag(cls)
        known = self._types.get(tag)
        if known is not None and known is not cls:
            raise ValueError(f"Tag {tag!r} is already registered for {known.__qualname__}")
        self._tags[cls] = tag
        self._types[tag] = cls
        return tag

    def tag_for(self, value: Any) -> str:
        """Return the tag for an instance, a class, or an explicit tag string."""
        if isinstance(value, str):
            return value
        cls = value if isinstance(value, type) else type(value)
        return self._tags.get(cls) or self.default_tag(cls)

    def resolve(self, tag: str) -> type | None:
        """Return the class registered under *tag*, or ``None``."""
        return self._types.get(tag)

    @staticmethod
    def default_tag(cls: type) -> str:
        return f"{cls.__module__}.{cls.__qualname__}"


__all__ = ["TypeTagger"]
