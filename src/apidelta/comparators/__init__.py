"""Per-format section comparators."""

from apidelta.comparators.asyncapi import (
    AsyncApiComparator,
    ChannelComparator,
    MessageComparator,
)
from apidelta.comparators.grpc import GrpcComparator
from apidelta.comparators.rest import RestComparator

__all__ = [
    "AsyncApiComparator",
    "ChannelComparator",
    "GrpcComparator",
    "MessageComparator",
    "RestComparator",
]
