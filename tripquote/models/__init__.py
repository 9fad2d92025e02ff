from tripquote.models.history import HistorySnapshot

__all__ = [
    "HistorySnapshot",
]
