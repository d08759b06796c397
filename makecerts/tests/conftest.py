"""Test fixtures for makecerts tests."""

import shutil
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from makecerts.lib.cert_utils import build_csr, generate_private_key
from makecerts.lib.certificate_builder import CertificateBuilder
from makecerts.lib.config import CertConfig, DistinguishedName

ECHO_TEST_EXT = """\
authorityKeyIdentifier=keyid,issuer
basicConstraints=CA:FALSE
keyUsage = digitalSignature, nonRepudiation, keyEncipherment, dataEncipherment
extendedKeyUsage = serverAuth
subjectAltName = @alt_names

[alt_names]
DNS.1 = echo.test
"""


@pytest.fixture
def temp_output_dir(tmp_path: Path) -> Path:
    """Return a not-yet-created output directory (like ``certs/``)."""
    return tmp_path / "certs"


@pytest.fixture
def ext_file(tmp_path: Path) -> Path:
    """Write the echo.test extension file outside the output directory."""
    path = tmp_path / "echo.test.ext"
    path.write_text(ECHO_TEST_EXT)
    return path


@pytest.fixture
def cert_config(ext_file: Path) -> CertConfig:
    """Return test configuration with smaller keys."""
    return CertConfig(
        organization="Test Org",
        organizational_unit="Test Unit",
        key_size=2048,  # Faster for tests
        ext_file=ext_file,
    )


@pytest.fixture
def root_key() -> RSAPrivateKey:
    """Generate RSA private key for Root CA."""
    return generate_private_key(key_size=2048)


@pytest.fixture
def root_dn() -> DistinguishedName:
    """Return test Root CA distinguished name."""
    return DistinguishedName(
        country="US",
        state="Washington",
        locality="Seattle",
        organization="Test Org",
        organizational_unit="Test Unit",
        common_name="Test Root CA",
    )


@pytest.fixture
def root_cert(root_key: RSAPrivateKey, root_dn: DistinguishedName) -> x509.Certificate:
    """Generate self-signed Root CA certificate."""
    return CertificateBuilder.build_root_ca(
        subject_dn=root_dn,
        private_key=root_key,
        validity_days=1024,
    )


@pytest.fixture
def leaf_key() -> RSAPrivateKey:
    """Generate RSA private key for the leaf certificate."""
    return generate_private_key(key_size=2048)


@pytest.fixture
def leaf_dn() -> DistinguishedName:
    """Return test leaf distinguished name."""
    return DistinguishedName(
        country="US",
        state="Washington",
        locality="Seattle",
        organization="Test Org",
        organizational_unit="Test Unit",
        common_name="echo.test",
    )


@pytest.fixture
def leaf_csr(leaf_key: RSAPrivateKey, leaf_dn: DistinguishedName) -> x509.CertificateSigningRequest:
    """Generate leaf CSR."""
    return build_csr(leaf_key, leaf_dn)


@pytest.fixture
def openssl_binary() -> str:
    """Path to a real openssl binary; skips the test when there is none."""
    path = shutil.which("openssl")
    if path is None:
        pytest.skip("openssl binary not available")
    return path
