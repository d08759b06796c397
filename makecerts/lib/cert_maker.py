"""Root CA + leaf certificate pipeline using the cryptography library."""

import shutil
from pathlib import Path

from .cert_utils import (
    build_csr,
    generate_private_key,
    serialize_certificate,
    serialize_csr,
    serialize_private_key,
)
from .certificate_builder import CertificateBuilder
from .config import ROOT_COMMON_NAME, CertConfig, build_dn_from_config
from .extfile import load_extension_file
from .logging_config import LOGGER
from .models import MakeCertsResult
from .serial_file import format_serial, next_serial, write_serial


class CertMaker:
    """Creates a self-signed root CA and a leaf certificate signed by it."""

    def __init__(self, config: CertConfig) -> None:
        """Initialize with configuration.

        Args:
            config: Key size, validity periods, names and DN template
        """
        self.config = config

    def make_certs(self, output_dir: Path, ext_file: Path) -> MakeCertsResult:
        """Run the whole pipeline, writing artifacts to ``output_dir``.

        Steps, each consuming earlier outputs:
            1. Create ``output_dir`` and copy the extension file into it
            2. Generate the root key
            3. Self-sign the root certificate
            4. Generate the leaf key
            5. Build the leaf CSR
            6. Sign the leaf CSR with the root, advancing the serial file

        Args:
            output_dir: Directory for output artifacts (created if missing)
            ext_file: Extension file applied to the leaf certificate

        Returns:
            MakeCertsResult with file paths and the leaf serial

        Raises:
            FileNotFoundError: If ``ext_file`` does not exist
            ExtensionFileError: If ``ext_file`` cannot be parsed
        """
        config = self.config

        # Fails before anything is generated
        extensions = load_extension_file(ext_file)

        output_dir.mkdir(parents=True, exist_ok=True)
        ext_copy_path = output_dir / ext_file.name
        if ext_copy_path.resolve() != ext_file.resolve():
            shutil.copyfile(ext_file, ext_copy_path)
        LOGGER.info("Copied extension file to %s", ext_copy_path)

        root_key_path = config.root_key_path(output_dir)
        root_cert_path = config.root_cert_path(output_dir)
        serial_path = config.serial_path(output_dir)
        leaf_key_path = config.leaf_key_path(output_dir)
        leaf_csr_path = config.leaf_csr_path(output_dir)
        leaf_cert_path = config.leaf_cert_path(output_dir)

        LOGGER.info("Generating %d-bit root key", config.key_size)
        root_key = generate_private_key(config.key_size)
        root_key_path.write_bytes(serialize_private_key(root_key))

        root_cert = CertificateBuilder.build_root_ca(
            subject_dn=build_dn_from_config(config, ROOT_COMMON_NAME),
            private_key=root_key,
            validity_days=config.root_validity_days,
            digest=config.digest,
        )
        root_cert_path.write_bytes(serialize_certificate(root_cert))
        LOGGER.info("Root CA certificate written: %s", root_cert_path)

        LOGGER.info("Generating %d-bit leaf key", config.key_size)
        leaf_key = generate_private_key(config.key_size)
        leaf_key_path.write_bytes(serialize_private_key(leaf_key))

        csr = build_csr(
            leaf_key,
            build_dn_from_config(config, config.leaf_name),
            digest=config.digest,
        )
        leaf_csr_path.write_bytes(serialize_csr(csr))

        serial = next_serial(serial_path)
        leaf_cert = CertificateBuilder.build_leaf_certificate(
            csr=csr,
            issuer_cert=root_cert,
            issuer_key=root_key,
            validity_days=config.leaf_validity_days,
            serial_number=serial,
            extensions=extensions.to_x509_extensions(csr.public_key(), root_cert),
            digest=config.digest,
            suppressed=extensions.suppressed_extensions(),
        )
        write_serial(serial_path, serial)
        leaf_cert_path.write_bytes(serialize_certificate(leaf_cert))
        LOGGER.info("Leaf certificate written: %s", leaf_cert_path)

        return MakeCertsResult(
            output_dir=output_dir,
            ext_file_path=ext_copy_path,
            root_key_path=root_key_path,
            root_cert_path=root_cert_path,
            serial_path=serial_path,
            leaf_key_path=leaf_key_path,
            leaf_csr_path=leaf_csr_path,
            leaf_cert_path=leaf_cert_path,
            leaf_serial=format_serial(serial),
        )
