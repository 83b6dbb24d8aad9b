"""Review persistence for Lintelligent."""

from lintelligent.storage.store import RatingStatistics, ReviewStore, StorageError

__all__ = [
    "RatingStatistics",
    "ReviewStore",
    "StorageError",
]
