"""Age encryption for secrets stored in the config file."""

import base64
from pathlib import Path

import pyrage

AGE_PREFIX = "AGE:"
IDENTITY_FILE = Path.home() / ".config" / "ovirtcli" / ".age-identity"


def _load_identity(path: Path | None = None) -> pyrage.x25519.Identity:
    """Load the age identity, generating one on first use."""
    path = path or IDENTITY_FILE
    if path.exists():
        return pyrage.x25519.Identity.from_str(path.read_text().strip())

    path.parent.mkdir(parents=True, exist_ok=True)
    identity = pyrage.x25519.Identity.generate()
    path.write_text(str(identity))
    path.chmod(0o600)
    return identity


def is_encrypted(value: str) -> bool:
    """Check if a value is age-encrypted."""
    return value.startswith(AGE_PREFIX)


def encrypt(value: str, identity_file: Path | None = None) -> str:
    """Encrypt a secret.

    Args:
        value: Plaintext, returned unchanged if already encrypted
        identity_file: Identity to encrypt for (defaults to IDENTITY_FILE)

    Returns:
        ``AGE:`` followed by the base64 ciphertext
    """
    if is_encrypted(value):
        return value
    recipient = _load_identity(identity_file).to_public()
    ciphertext = pyrage.encrypt(value.encode(), [recipient])
    return AGE_PREFIX + base64.b64encode(ciphertext).decode()


def decrypt(value: str, identity_file: Path | None = None) -> str:
    """Decrypt an ``AGE:`` value; plaintext is returned unchanged."""
    if not is_encrypted(value):
        return value
    identity = _load_identity(identity_file)
    ciphertext = base64.b64decode(value[len(AGE_PREFIX):])
    return pyrage.decrypt(ciphertext, [identity]).decode()
