"""Certificate utility functions for key generation, serialization and checks."""

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from makecerts.lib.config import DistinguishedName

DIGESTS: dict[str, type[hashes.HashAlgorithm]] = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}


def get_digest(name: str) -> hashes.HashAlgorithm:
    """Map an OpenSSL digest name (``sha256``, ``-sha256``) to a hash instance."""
    try:
        return DIGESTS[name.lower().lstrip("-")]()
    except KeyError:
        raise ValueError(f"unsupported digest: {name}") from None


def generate_private_key(key_size: int = 4096) -> RSAPrivateKey:
    """Generate RSA private key with specified size."""
    return rsa.generate_private_key(
        public_exponent=65537,
        key_size=key_size,
    )


def serialize_private_key(key: RSAPrivateKey) -> bytes:
    """Serialize private key to PEM format (PKCS8, no encryption)."""
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def deserialize_private_key(pem_data: bytes) -> RSAPrivateKey:
    """Deserialize private key from PEM bytes."""
    key = serialization.load_pem_private_key(pem_data, password=None)
    if not isinstance(key, RSAPrivateKey):
        raise ValueError("expected RSA private key")
    return key


def serialize_certificate(cert: x509.Certificate) -> bytes:
    """Serialize certificate to PEM format."""
    return cert.public_bytes(serialization.Encoding.PEM)


def deserialize_certificate(pem_data: bytes) -> x509.Certificate:
    """Deserialize certificate from PEM bytes."""
    return x509.load_pem_x509_certificate(pem_data)


def serialize_csr(csr: x509.CertificateSigningRequest) -> bytes:
    """Serialize CSR to PEM format."""
    return csr.public_bytes(serialization.Encoding.PEM)


def deserialize_csr(pem_data: bytes) -> x509.CertificateSigningRequest:
    """Deserialize CSR from PEM bytes."""
    return x509.load_pem_x509_csr(pem_data)


def generate_serial_number() -> int:
    """Generate a random positive serial number of at most 159 bits.

    Same range OpenSSL uses for ``-CAcreateserial``.
    """
    return x509.random_serial_number()


def build_csr(
    key: RSAPrivateKey,
    subject: DistinguishedName,
    digest: str = "sha256",
) -> x509.CertificateSigningRequest:
    """Build a CSR for ``subject`` self-signed with ``key``."""
    return (
        x509.CertificateSigningRequestBuilder()
        .subject_name(subject.to_x509_name())
        .sign(key, get_digest(digest))
    )


def validate_csr_signature(csr: x509.CertificateSigningRequest) -> bool:
    """Verify CSR self-signature to prove private key possession.

    Args:
        csr: Certificate signing request

    Returns:
        True if signature is valid, False otherwise
    """
    try:
        return csr.is_signature_valid
    except (InvalidSignature, ValueError):
        return False


def validate_chain(leaf_cert: x509.Certificate, root_cert: x509.Certificate) -> bool:
    """Verify leaf -> root signature and issuer/subject linkage.

    Returns True if chain is valid, False otherwise.
    """
    try:
        leaf_cert.verify_directly_issued_by(root_cert)
        root_cert.verify_directly_issued_by(root_cert)
        return True
    except (InvalidSignature, ValueError, TypeError):
        return False


def validity_days(cert: x509.Certificate) -> int:
    """Whole days between notBefore and notAfter."""
    return (cert.not_valid_after_utc - cert.not_valid_before_utc).days


def key_matches_certificate(key: RSAPrivateKey, cert: x509.Certificate) -> bool:
    """True when ``cert`` carries the public half of ``key``."""
    public_key = cert.public_key()
    if not isinstance(public_key, rsa.RSAPublicKey):
        return False
    return public_key.public_numbers() == key.public_key().public_numbers()
