"""Certificate builder for the root CA and leaf certificates."""

from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .cert_utils import generate_serial_number, get_digest, validate_csr_signature
from .config import DistinguishedName


class CertificateBuilder:
    """Builds X.509 certificates for the root CA and the leaf it signs."""

    @staticmethod
    def build_root_ca(
        subject_dn: DistinguishedName,
        private_key: RSAPrivateKey,
        validity_days: int,
        digest: str = "sha256",
    ) -> x509.Certificate:
        """Build self-signed Root CA certificate.

        Mirrors ``openssl req -x509 -new`` with the stock ``v3_ca`` section:
        key identifiers plus a critical CA basic constraint.

        Args:
            subject_dn: Distinguished name for certificate subject
            private_key: RSA private key for signing
            validity_days: Certificate validity period in days
            digest: Signature digest name

        Returns:
            Self-signed X.509 certificate with CA extensions
        """
        subject = subject_dn.to_x509_name()
        public_key = private_key.public_key()
        not_before = datetime.now(timezone.utc)
        not_after = not_before + timedelta(days=validity_days)

        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(subject)
            .public_key(public_key)
            .serial_number(generate_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(public_key),
                critical=False,
            )
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(public_key),
                critical=False,
            )
            .add_extension(
                x509.BasicConstraints(ca=True, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=False,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=True,
                    crl_sign=True,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
        )

        return builder.sign(private_key, get_digest(digest))

    @staticmethod
    def build_leaf_certificate(
        csr: x509.CertificateSigningRequest,
        issuer_cert: x509.Certificate,
        issuer_key: RSAPrivateKey,
        validity_days: int,
        serial_number: int,
        extensions: list[tuple[x509.ExtensionType, bool]],
        digest: str = "sha256",
        suppressed: frozenset[type[x509.ExtensionType]] = frozenset(),
    ) -> x509.Certificate:
        """Build leaf certificate from CSR, signed by the Root CA.

        Like ``openssl x509 -req``, the CSR only contributes subject and public
        key; extensions come from the caller (the extension file). Key
        identifiers are added when ``extensions`` does not carry them.

        Args:
            csr: Certificate signing request for the leaf
            issuer_cert: Root CA certificate (issuer)
            issuer_key: Root CA private key for signing
            validity_days: Certificate validity period in days
            serial_number: Serial to stamp on the certificate
            extensions: ``(extension, critical)`` pairs to include
            digest: Signature digest name
            suppressed: Key identifier types never to add by default

        Returns:
            X.509 end-entity certificate signed by the Root CA

        Raises:
            ValueError: If CSR signature is invalid
        """
        if not validate_csr_signature(csr):
            raise ValueError("CSR signature validation failed")

        public_key = csr.public_key()
        not_before = datetime.now(timezone.utc)
        not_after = not_before + timedelta(days=validity_days)

        builder = (
            x509.CertificateBuilder()
            .subject_name(csr.subject)
            .issuer_name(issuer_cert.subject)
            .public_key(public_key)
            .serial_number(serial_number)
            .not_valid_before(not_before)
            .not_valid_after(not_after)
        )

        present = {type(extension) for extension, _ in extensions} | suppressed
        for extension, critical in extensions:
            builder = builder.add_extension(extension, critical=critical)

        if x509.SubjectKeyIdentifier not in present:
            builder = builder.add_extension(
                x509.SubjectKeyIdentifier.from_public_key(public_key),
                critical=False,
            )
        if x509.AuthorityKeyIdentifier not in present:
            builder = builder.add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_key.public_key()),
                critical=False,
            )

        return builder.sign(issuer_key, get_digest(digest))
