from .memory_store import InMemoryMeasureSource

__all__ = ["InMemoryMeasureSource"]
