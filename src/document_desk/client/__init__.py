"""HTTP adapters for the remote ERP service."""

from document_desk.client.api_client import APIError, DocumentAPIClient

__all__ = ["APIError", "DocumentAPIClient"]
