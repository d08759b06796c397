"""Result models for certificate fixture runs."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class MakeCertsResult:
    """Result from a root CA + leaf certificate run.

    Contains file paths for every artifact and the leaf serial number.
    """

    output_dir: Path
    ext_file_path: Path
    root_key_path: Path
    root_cert_path: Path
    serial_path: Path
    leaf_key_path: Path
    leaf_csr_path: Path
    leaf_cert_path: Path
    leaf_serial: str

    def files(self) -> list[Path]:
        return [
            self.ext_file_path,
            self.root_key_path,
            self.root_cert_path,
            self.serial_path,
            self.leaf_key_path,
            self.leaf_csr_path,
            self.leaf_cert_path,
        ]


@dataclass
class VerificationReport:
    """Outcome of checking a certificate output directory."""

    output_dir: Path
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems
