"""Query engines operating on a built `QuadTree`."""

from .knn import BatchKNNResult, KNNResult, Neighbor, knn, knn_batch

__all__ = ["BatchKNNResult", "KNNResult", "Neighbor", "knn", "knn_batch"]
