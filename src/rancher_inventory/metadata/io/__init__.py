"""I/O transports for the Rancher metadata service."""

from .async_http import MetadataHTTPTransport

__all__ = ["MetadataHTTPTransport"]
