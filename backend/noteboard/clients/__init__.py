# Clients package init
"""
NoteBoard Backend - Platform Clients
====================================

What:  Everything that talks to the managed backend-as-a-service.

Client Inventory:
    - DataClient / HttpDataClient: Note records (list, create, delete)
    - StorageClient / HttpStorageClient: Image blobs (upload, signed URL, remove)
    - AuthClient / HttpAuthClient: Current user and sign-out
    - PlatformTransport: Shared authenticated httpx request helper
"""

import httpx

from noteboard.clients.auth import HttpAuthClient
from noteboard.clients.base import PlatformClients
from noteboard.clients.data import HttpDataClient
from noteboard.clients.storage import HttpStorageClient
from noteboard.clients.transport import PlatformTransport
from noteboard.config import settings
from noteboard.exceptions import AuthServiceError, DataServiceError, StorageError


def build_platform_clients(http: httpx.AsyncClient, token: str) -> PlatformClients:
    """Bind the three platform clients to one session token."""
    return PlatformClients(
        data=HttpDataClient(
            PlatformTransport(http, settings.platform_data_url, token, DataServiceError)
        ),
        storage=HttpStorageClient(
            PlatformTransport(http, settings.platform_storage_url, token, StorageError)
        ),
        auth=HttpAuthClient(
            PlatformTransport(http, settings.platform_auth_url, token, AuthServiceError)
        ),
    )
