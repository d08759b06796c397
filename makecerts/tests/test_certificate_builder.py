"""Tests for certificate builder module."""

from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from makecerts.lib.cert_utils import validity_days
from makecerts.lib.certificate_builder import CertificateBuilder
from makecerts.lib.config import DistinguishedName
from makecerts.lib.extfile import load_extension_file, parse_extension_file


class TestBuildRootCA:
    """Tests for CertificateBuilder.build_root_ca."""

    def test_root_is_self_signed(
        self, root_cert: x509.Certificate, root_dn: DistinguishedName
    ) -> None:
        """Issuer equals subject and the signature verifies with its own key."""
        assert root_cert.subject == root_dn.to_x509_name()
        assert root_cert.issuer == root_cert.subject
        root_cert.verify_directly_issued_by(root_cert)

    def test_root_has_ca_basic_constraints(self, root_cert: x509.Certificate) -> None:
        ext = root_cert.extensions.get_extension_for_class(x509.BasicConstraints)
        assert ext.critical is True
        assert ext.value.ca is True

    def test_root_key_usage(self, root_cert: x509.Certificate) -> None:
        ku = root_cert.extensions.get_extension_for_class(x509.KeyUsage).value
        assert ku.key_cert_sign is True
        assert ku.crl_sign is True

    def test_root_validity_and_digest(self, root_cert: x509.Certificate) -> None:
        """1024 days, SHA-256."""
        assert validity_days(root_cert) == 1024
        assert isinstance(root_cert.signature_hash_algorithm, hashes.SHA256)

    def test_root_digest_is_configurable(
        self, root_key: RSAPrivateKey, root_dn: DistinguishedName
    ) -> None:
        cert = CertificateBuilder.build_root_ca(root_dn, root_key, 10, digest="sha512")
        assert isinstance(cert.signature_hash_algorithm, hashes.SHA512)


class TestBuildLeafCertificate:
    """Tests for CertificateBuilder.build_leaf_certificate."""

    def test_leaf_issued_by_root(
        self,
        leaf_csr: x509.CertificateSigningRequest,
        root_cert: x509.Certificate,
        root_key: RSAPrivateKey,
    ) -> None:
        """Leaf issuer matches root subject and verifies against the root."""
        leaf = CertificateBuilder.build_leaf_certificate(
            csr=leaf_csr,
            issuer_cert=root_cert,
            issuer_key=root_key,
            validity_days=825,
            serial_number=42,
            extensions=[],
        )
        assert leaf.issuer == root_cert.subject
        assert leaf.subject == leaf_csr.subject
        assert leaf.serial_number == 42
        assert validity_days(leaf) == 825
        leaf.verify_directly_issued_by(root_cert)

    def test_leaf_gets_default_key_identifiers(
        self,
        leaf_csr: x509.CertificateSigningRequest,
        root_cert: x509.Certificate,
        root_key: RSAPrivateKey,
    ) -> None:
        """SKI and AKI are added when no extension names them."""
        leaf = CertificateBuilder.build_leaf_certificate(
            csr=leaf_csr,
            issuer_cert=root_cert,
            issuer_key=root_key,
            validity_days=825,
            serial_number=1,
            extensions=[],
        )
        ski = leaf.extensions.get_extension_for_class(x509.SubjectKeyIdentifier).value
        aki = leaf.extensions.get_extension_for_class(x509.AuthorityKeyIdentifier).value
        root_ski = root_cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier).value
        assert ski == x509.SubjectKeyIdentifier.from_public_key(leaf_csr.public_key())
        assert aki.key_identifier == root_ski.digest

    def test_suppressed_key_identifiers_not_added(
        self,
        leaf_csr: x509.CertificateSigningRequest,
        root_cert: x509.Certificate,
        root_key: RSAPrivateKey,
    ) -> None:
        parsed = parse_extension_file("subjectKeyIdentifier = none\nauthorityKeyIdentifier = none\n")
        leaf = CertificateBuilder.build_leaf_certificate(
            csr=leaf_csr,
            issuer_cert=root_cert,
            issuer_key=root_key,
            validity_days=825,
            serial_number=1,
            extensions=parsed.to_x509_extensions(leaf_csr.public_key(), root_cert),
            suppressed=parsed.suppressed_extensions(),
        )
        assert len(leaf.extensions) == 0

    def test_leaf_carries_extension_file(
        self,
        ext_file: Path,
        leaf_csr: x509.CertificateSigningRequest,
        root_cert: x509.Certificate,
        root_key: RSAPrivateKey,
    ) -> None:
        """Extensions from the echo.test file appear on the leaf, once each."""
        parsed = load_extension_file(ext_file)
        leaf = CertificateBuilder.build_leaf_certificate(
            csr=leaf_csr,
            issuer_cert=root_cert,
            issuer_key=root_key,
            validity_days=825,
            serial_number=1,
            extensions=parsed.to_x509_extensions(leaf_csr.public_key(), root_cert),
        )
        san = leaf.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
        assert san.get_values_for_type(x509.DNSName) == ["echo.test"]
        assert leaf.extensions.get_extension_for_class(x509.BasicConstraints).value.ca is False
        oids = [ext.oid for ext in leaf.extensions]
        assert len(oids) == len(set(oids))

    def test_rejects_tampered_csr(
        self,
        leaf_csr: x509.CertificateSigningRequest,
        root_cert: x509.Certificate,
        root_key: RSAPrivateKey,
    ) -> None:
        """A CSR whose signature does not verify is refused."""
        der = bytearray(leaf_csr.public_bytes(serialization.Encoding.DER))
        der[-1] ^= 0xFF
        tampered = x509.load_der_x509_csr(bytes(der))

        with pytest.raises(ValueError, match="CSR signature validation failed"):
            CertificateBuilder.build_leaf_certificate(
                csr=tampered,
                issuer_cert=root_cert,
                issuer_key=root_key,
                validity_days=825,
                serial_number=1,
                extensions=[],
            )
