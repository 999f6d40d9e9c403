"""Request Partitioner module."""

from .request_partitioner import PartitionResult, RequestPartitioner

__all__ = ["RequestPartitioner", "PartitionResult"]
