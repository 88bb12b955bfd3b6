"""Secret manifest creation.

This module builds the unsealed Opaque secret that is handed to kubeseal.
Building is a pure transform: nothing touches the filesystem or network.
"""

from icecream import ic

from ehrbase_seal import codec
from ehrbase_seal.exceptions import DuplicateKeyError, InvalidIdentifierError
from ehrbase_seal.models import CredentialSet, SecretManifest
from ehrbase_seal.secrets.prompts import validate_data_key, validate_k8s_name, validate_k8s_namespace


def build_secret_manifest(name: str, namespace: str, credentials: CredentialSet) -> SecretManifest:
    """Build an Opaque secret manifest from plaintext credentials.

    Args:
        name: The secret name (DNS subdomain).
        namespace: The namespace (DNS label).
        credentials: Ordered key/plaintext pairs.

    Returns:
        A SecretManifest whose data values are base64 text.

    Raises:
        InvalidIdentifierError: If the name, namespace or a key is invalid.
        DuplicateKeyError: If a key appears more than once.

    """
    name_check = validate_k8s_name(name)
    if name_check is not True:
        raise InvalidIdentifierError(f"Invalid secret name '{name}': {name_check}")

    namespace_check = validate_k8s_namespace(namespace)
    if namespace_check is not True:
        raise InvalidIdentifierError(f"Invalid namespace '{namespace}' for secret '{name}': {namespace_check}")

    data: dict[str, str] = {}
    for key, value in credentials:
        key_check = validate_data_key(key)
        if key_check is not True:
            raise InvalidIdentifierError(f"Invalid key '{key}' in secret '{name}': {key_check}")
        if key in data:
            raise DuplicateKeyError(f"Key '{key}' appears more than once in secret '{name}'")
        data[key] = codec.encode(value)

    # Keys only; values never reach the debug output
    ic(name, namespace, list(data))

    return SecretManifest(name=name, namespace=namespace, data=data)
