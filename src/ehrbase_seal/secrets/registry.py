"""Key-mapping registry.

This module holds the single table binding every logical credential to
the ``(secret name, key)`` pair the EHRbase deployment templates read.
Provisioning, prompting and validation all consult it; a new credential
is introduced by adding one entry here.
"""

from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import yaml
from icecream import ic

from ehrbase_seal.exceptions import DuplicateKeyError, SecretParsingError, UnknownIdentifierError
from ehrbase_seal.models import KeyMappingEntry

DEFAULT_RELEASE_PREFIX = "ehrbase-"
MANIFEST_SUFFIX = "-sealed-secret.yaml"


class KeyMappingRegistry:
    """Read-only table of credential bindings.

    Attributes:
        release_prefix: Prefix stripped from secret names to form file names.

    """

    def __init__(self, entries: Iterable[KeyMappingEntry], *, release_prefix: str = DEFAULT_RELEASE_PREFIX) -> None:
        """Initialize the registry.

        Args:
            entries: The bindings, in the order secrets should be provisioned.
            release_prefix: Prefix stripped from secret names for file names.

        Raises:
            DuplicateKeyError: If a logical id or a (secret, key) pair repeats.

        """
        self.release_prefix: str = release_prefix
        self._entries: tuple[KeyMappingEntry, ...] = tuple(entries)
        self._by_id: dict[str, KeyMappingEntry] = {}
        seen_bindings: set[tuple[str, str]] = set()

        for entry in self._entries:
            if entry.logical_id in self._by_id:
                raise DuplicateKeyError(f"Logical credential '{entry.logical_id}' is registered twice")
            binding = (entry.secret_name, entry.key)
            if binding in seen_bindings:
                raise DuplicateKeyError(
                    f"Key '{entry.key}' of secret '{entry.secret_name}' is bound to more than one credential"
                )
            self._by_id[entry.logical_id] = entry
            seen_bindings.add(binding)

    def __iter__(self) -> Iterator[KeyMappingEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"KeyMappingRegistry(secrets={self.secret_names()!r}, entries={len(self._entries)})"

    def lookup(self, logical_id: str) -> tuple[str, str]:
        """Return the (secret name, key) pair for a logical credential.

        Raises:
            UnknownIdentifierError: If the logical id is not registered.

        """
        try:
            entry = self._by_id[logical_id]
        except KeyError:
            raise UnknownIdentifierError(f"No registry entry for credential '{logical_id}'") from None
        return entry.secret_name, entry.key

    def entries_for(self, secret_name: str) -> list[KeyMappingEntry]:
        """Return every binding stored in the given secret, in registry order."""
        return [entry for entry in self._entries if entry.secret_name == secret_name]

    def keys_for(self, secret_name: str) -> set[str]:
        """Return every key (required or optional) bound in the given secret."""
        return {entry.key for entry in self.entries_for(secret_name)}

    def required_keys_for(self, secret_name: str) -> set[str]:
        """Return the keys a deployment cannot run without."""
        return {entry.key for entry in self.entries_for(secret_name) if entry.required}

    def all_secret_names(self) -> set[str]:
        """Return the names of all secrets the templates reference."""
        return {entry.secret_name for entry in self._entries}

    def secret_names(self) -> list[str]:
        """Return the secret names in first-appearance order."""
        return list(dict.fromkeys(entry.secret_name for entry in self._entries))

    def manifest_filename(self, secret_name: str) -> str:
        """Return the file name a secret's sealed manifest is stored under.

        ``ehrbase-redis`` becomes ``redis-sealed-secret.yaml``.
        """
        short_name = secret_name.removeprefix(self.release_prefix) or secret_name
        return f"{short_name}{MANIFEST_SUFFIX}"


DEFAULT_ENTRIES: tuple[KeyMappingEntry, ...] = (
    KeyMappingEntry(
        logical_id="auth.admin-username",
        secret_name="ehrbase-auth-users",
        key="admin-username",
        prompt="Admin username",
        default="ehrbase-admin",
        env_var="SECURITY_AUTHADMINUSER",
    ),
    KeyMappingEntry(
        logical_id="auth.admin-password",
        secret_name="ehrbase-auth-users",
        key="admin-password",
        prompt="Admin password",
        env_var="SECURITY_AUTHADMINPASSWORD",
    ),
    KeyMappingEntry(
        logical_id="auth.username",
        secret_name="ehrbase-auth-users",
        key="username",
        prompt="User name",
        default="ehrbase-user",
        env_var="SECURITY_AUTHUSER",
    ),
    KeyMappingEntry(
        logical_id="auth.password",
        secret_name="ehrbase-auth-users",
        key="password",
        prompt="User password",
        env_var="SECURITY_AUTHPASSWORD",
    ),
    KeyMappingEntry(
        logical_id="postgresql.admin-password",
        secret_name="ehrbase-postgresql",
        key="postgres-password",
        prompt="PostgreSQL admin password",
    ),
    KeyMappingEntry(
        logical_id="postgresql.password",
        secret_name="ehrbase-postgresql",
        key="password",
        prompt="PostgreSQL user password",
        env_var="DB_PASS",
    ),
    KeyMappingEntry(
        logical_id="redis.password",
        secret_name="ehrbase-redis",
        key="redis-password",
        prompt="Redis password",
        env_var="SPRING_DATA_REDIS_PASSWORD",
    ),
)

DEFAULT_REGISTRY = KeyMappingRegistry(DEFAULT_ENTRIES)


def _entry_from_mapping(raw: Any, source: str) -> KeyMappingEntry:
    """Convert one YAML binding into a KeyMappingEntry."""
    if not isinstance(raw, dict):
        raise SecretParsingError(f"Registry file '{source}' contains a binding that is not a mapping: {raw!r}")
    try:
        return KeyMappingEntry(
            logical_id=str(raw["logical_id"]),
            secret_name=str(raw["secret_name"]),
            key=str(raw["key"]),
            required=bool(raw.get("required", True)),
            prompt=str(raw.get("prompt", "")),
            default=None if raw.get("default") is None else str(raw["default"]),
            env_var=raw.get("env_var"),
        )
    except KeyError as err:
        raise SecretParsingError(f"Registry file '{source}' has a binding without '{err.args[0]}'") from err


def load_registry(path: str | Path) -> KeyMappingRegistry:
    """Load a registry table from a YAML file.

    The file holds an optional ``release_prefix`` and a ``bindings`` list
    whose items carry ``logical_id``, ``secret_name``, ``key`` and the
    optional ``required``, ``prompt``, ``default`` and ``env_var`` fields.

    Args:
        path: Path to the YAML file.

    Returns:
        The loaded registry.

    Raises:
        SecretParsingError: If the file is missing, malformed or incomplete.
        DuplicateKeyError: If bindings repeat.

    """
    source = str(path)
    try:
        with open(path, encoding="utf-8") as stream:
            raw = yaml.safe_load(stream)
    except FileNotFoundError as err:
        raise SecretParsingError(f"Registry file '{source}' does not exist") from err
    except UnicodeDecodeError as err:
        raise SecretParsingError(f"Registry file '{source}' is not valid UTF-8 text: {err}") from err
    except OSError as err:
        raise SecretParsingError(f"Registry file '{source}' cannot be read: {err}") from err
    except yaml.YAMLError as err:
        raise SecretParsingError(f"Registry file '{source}' contains malformed YAML: {err}") from err

    if not isinstance(raw, dict) or not isinstance(raw.get("bindings"), list):
        raise SecretParsingError(f"Registry file '{source}' must be a mapping with a 'bindings' list")

    entries = [_entry_from_mapping(item, source) for item in raw["bindings"]]
    ic(source, len(entries))
    return KeyMappingRegistry(entries, release_prefix=str(raw.get("release_prefix", DEFAULT_RELEASE_PREFIX)))
