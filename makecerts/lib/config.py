"""Certificate fixture configuration dataclasses."""

from dataclasses import dataclass
from pathlib import Path

from cryptography import x509
from cryptography.x509 import oid

ROOT_COMMON_NAME = "Echo Test Root CA"


@dataclass
class CertConfig:
    """Settings for one root CA + leaf certificate run."""

    country: str = "US"
    state: str = "Washington"
    locality: str = "Seattle"
    organization: str = "Echo Test Fixtures"
    organizational_unit: str = "QUIC Echo"
    root_name: str = "rootCA"
    leaf_name: str = "echo.test"
    root_validity_days: int = 1024
    leaf_validity_days: int = 825
    key_size: int = 4096
    digest: str = "sha256"
    output_dir: Path = Path("certs")
    ext_file: Path = Path("echo.test.ext")
    openssl_binary: str = "openssl"

    def root_key_path(self, output_dir: Path) -> Path:
        return output_dir / f"{self.root_name}.key"

    def root_cert_path(self, output_dir: Path) -> Path:
        return output_dir / f"{self.root_name}.crt"

    def serial_path(self, output_dir: Path) -> Path:
        return output_dir / f"{self.root_name}.srl"

    def leaf_key_path(self, output_dir: Path) -> Path:
        return output_dir / f"{self.leaf_name}.key"

    def leaf_csr_path(self, output_dir: Path) -> Path:
        return output_dir / f"{self.leaf_name}.csr"

    def leaf_cert_path(self, output_dir: Path) -> Path:
        return output_dir / f"{self.leaf_name}.crt"

    def output_files(self, output_dir: Path) -> list[Path]:
        """Every file a successful run leaves behind, extension copy excluded."""
        return [
            self.root_key_path(output_dir),
            self.root_cert_path(output_dir),
            self.serial_path(output_dir),
            self.leaf_key_path(output_dir),
            self.leaf_csr_path(output_dir),
            self.leaf_cert_path(output_dir),
        ]


@dataclass
class DistinguishedName:
    """X.509 Subject Distinguished Name."""

    country: str
    state: str
    locality: str
    organization: str
    organizational_unit: str
    common_name: str

    def _pairs(self) -> list[tuple[str, oid.ObjectIdentifier, str]]:
        return [
            ("C", oid.NameOID.COUNTRY_NAME, self.country),
            ("ST", oid.NameOID.STATE_OR_PROVINCE_NAME, self.state),
            ("L", oid.NameOID.LOCALITY_NAME, self.locality),
            ("O", oid.NameOID.ORGANIZATION_NAME, self.organization),
            ("OU", oid.NameOID.ORGANIZATIONAL_UNIT_NAME, self.organizational_unit),
            ("CN", oid.NameOID.COMMON_NAME, self.common_name),
        ]

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name for certificate generation.

        Empty fields are left out, as OpenSSL does for blank prompt answers.
        """
        return x509.Name(
            [x509.NameAttribute(attr_oid, value) for _, attr_oid, value in self._pairs() if value]
        )

    def to_openssl_subject(self) -> str:
        """Render as an OpenSSL ``-subj`` argument, e.g. ``/C=US/CN=echo.test``."""
        parts = []
        for short_name, _, value in self._pairs():
            if not value:
                continue
            escaped = value.replace("\\", "\\\\").replace("/", "\\/").replace("+", "\\+")
            parts.append(f"/{short_name}={escaped}")
        return "".join(parts)


def build_dn_from_config(config: CertConfig, common_name: str) -> DistinguishedName:
    """Build DN from CertConfig fields + common_name."""
    return DistinguishedName(
        country=config.country,
        state=config.state,
        locality=config.locality,
        organization=config.organization,
        organizational_unit=config.organizational_unit,
        common_name=common_name,
    )
