"""Ed25519 signatures over manifest digests recorded in the ledger."""
from __future__ import annotations

from pathlib import Path

from ..constants import KEY_FILE, PUB_FILE

try:  # pragma: no cover - optional dependency
    from cryptography.exceptions import InvalidSignature
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
except ImportError:  # pragma: no cover
    InvalidSignature = serialization = Ed25519PrivateKey = None


def _require_cryptography():
    if Ed25519PrivateKey is None:
        raise RuntimeError(
            "Ledger signatures need the 'cryptography' package; install it or use --no-sign"
        )


def _write_pem(path, data):
    path = Path(path)
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def ensure_keypair(key_file=KEY_FILE, pub_file=PUB_FILE):
    """Return the ledger signing key, creating *key_file* and *pub_file* once."""

    _require_cryptography()
    key_path = Path(key_file)
    if key_path.exists():
        return serialization.load_pem_private_key(key_path.read_bytes(), password=None)

    print("🔐 Generating a vipsobj ledger signing key ...")
    private_key = Ed25519PrivateKey.generate()
    _write_pem(
        key_path,
        private_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ),
    )
    _write_pem(
        pub_file,
        private_key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        ),
    )
    print(f"  ✓ Signing key in {key_file}, verification key in {pub_file}")
    return private_key


def sign_hash(sha256_hex, key_file=KEY_FILE, pub_file=PUB_FILE):
    """Hex signature of a manifest's SHA-256 hex digest."""

    return ensure_keypair(key_file, pub_file).sign(bytes.fromhex(sha256_hex)).hex()


def verify_signature(sha256_hex, signature_hex, pub_file=PUB_FILE):
    _require_cryptography()
    public_key = serialization.load_pem_public_key(Path(pub_file).read_bytes())
    try:
        public_key.verify(bytes.fromhex(signature_hex), bytes.fromhex(sha256_hex))
    except (InvalidSignature, ValueError):
        return False
    return True


__all__ = ["ensure_keypair", "sign_hash", "verify_signature"]
