"""Addressing metadata for the OS secret stores.

The values must be identical in every process sharing the cache, otherwise the
backends address different secrets.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Tuple

from identity.cache.location import CacheLocation

DEFAULT_SERVICE_NAME = "Microsoft.Developer.IdentityService"
DEFAULT_ACCOUNT_NAME = "MSALCache"

DEFAULT_SCHEMA_NAME = "msal.cache"
DEFAULT_COLLECTION = "default"
DEFAULT_SECRET_LABEL = "MSALCache"
DEFAULT_ATTRIBUTES = (
    ("MsalClientID", "Microsoft.Developer.IdentityService"),
    ("MsalClientVersion", "1.0.0.0"),
)

PERSISTENCE_CHECK_CLIENT_ID = "persistence_check"
PERSISTENCE_CHECK_FILENAME = "persistence_check.cache"
PERSISTENCE_CHECK_ACCOUNT_NAME = "PersistenceCheck"


@dataclass(frozen=True)
class KeychainSettings:
    service_name: str = DEFAULT_SERVICE_NAME
    account_name: str = DEFAULT_ACCOUNT_NAME


@dataclass(frozen=True)
class KeyringSettings:
    schema_name: str = DEFAULT_SCHEMA_NAME
    collection: str = DEFAULT_COLLECTION
    secret_label: str = DEFAULT_SECRET_LABEL
    attributes: Tuple[Tuple[str, str], ...] = DEFAULT_ATTRIBUTES


@dataclass(frozen=True)
class SecretStoreDescriptor:
    client_id: str
    location: CacheLocation
    keychain: KeychainSettings = field(default_factory=KeychainSettings)
    keyring: KeyringSettings = field(default_factory=KeyringSettings)

    def keyring_address(self, platform: str = sys.platform) -> Tuple[str, str]:
        """Return the ``(service, username)`` pair used with the keyring API."""
        if platform == "darwin" or platform.startswith("win"):
            return self.keychain.service_name, self.keychain.account_name
        attributes = ";".join(f"{k}={v}" for k, v in sorted(self.keyring.attributes))
        username = f"{self.keyring.collection}/{self.keyring.secret_label}"
        if attributes:
            username = f"{username};{attributes}"
        return self.keyring.schema_name, username


def build_descriptor(client_id: str, location: CacheLocation) -> SecretStoreDescriptor:
    return SecretStoreDescriptor(client_id=client_id, location=location)


def persistence_check_descriptor(location: CacheLocation) -> SecretStoreDescriptor:
    """Descriptor for the throwaway secret written while verifying the host."""
    return SecretStoreDescriptor(
        client_id=PERSISTENCE_CHECK_CLIENT_ID,
        location=location.sibling(PERSISTENCE_CHECK_FILENAME),
        keychain=KeychainSettings(account_name=PERSISTENCE_CHECK_ACCOUNT_NAME),
        keyring=KeyringSettings(secret_label=PERSISTENCE_CHECK_ACCOUNT_NAME),
    )
