"""Root CA + leaf certificate pipeline driven through the openssl binary."""

import shutil
import subprocess
from pathlib import Path

from .config import ROOT_COMMON_NAME, CertConfig, build_dn_from_config
from .logging_config import LOGGER
from .models import MakeCertsResult
from .serial_file import format_serial, read_serial


class OpenSSLRunner:
    """Runs ``openssl genrsa``/``req``/``x509`` with fixed flags, failing fast."""

    def __init__(self, config: CertConfig) -> None:
        self.config = config

    def run(self, *args: str) -> subprocess.CompletedProcess[str]:
        """Invoke ``openssl`` with ``args`` and wait for it.

        Raises:
            FileNotFoundError: If the openssl binary cannot be found
            subprocess.CalledProcessError: If openssl exits nonzero
        """
        command = [self.config.openssl_binary, *args]
        LOGGER.debug("Running: %s", " ".join(command))
        try:
            result = subprocess.run(command, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            LOGGER.error(
                "openssl %s failed with exit status %d: %s",
                args[0],
                e.returncode,
                (e.stderr or "").strip(),
            )
            raise
        if result.stderr:
            LOGGER.debug("openssl %s: %s", args[0], result.stderr.strip())
        return result

    def make_certs(self, output_dir: Path, ext_file: Path) -> MakeCertsResult:
        """Run the pipeline with openssl, writing artifacts to ``output_dir``.

        Args:
            output_dir: Directory for output artifacts (created if missing)
            ext_file: Extension file passed to ``openssl x509 -extfile``

        Returns:
            MakeCertsResult with file paths and the leaf serial

        Raises:
            FileNotFoundError: If ``ext_file`` or the openssl binary is missing
            subprocess.CalledProcessError: On the first failing openssl step
        """
        config = self.config

        if not ext_file.is_file():
            raise FileNotFoundError(f"extension file not found: {ext_file}")

        output_dir.mkdir(parents=True, exist_ok=True)
        ext_copy_path = output_dir / ext_file.name
        if ext_copy_path.resolve() != ext_file.resolve():
            shutil.copyfile(ext_file, ext_copy_path)

        root_key_path = config.root_key_path(output_dir)
        root_cert_path = config.root_cert_path(output_dir)
        serial_path = config.serial_path(output_dir)
        leaf_key_path = config.leaf_key_path(output_dir)
        leaf_csr_path = config.leaf_csr_path(output_dir)
        leaf_cert_path = config.leaf_cert_path(output_dir)
        digest = "-" + config.digest.lstrip("-")

        self.run("genrsa", "-out", str(root_key_path), str(config.key_size))
        self.run(
            "req", "-x509", "-new", "-nodes",
            "-key", str(root_key_path),
            digest,
            "-days", str(config.root_validity_days),
            "-subj", build_dn_from_config(config, ROOT_COMMON_NAME).to_openssl_subject(),
            "-out", str(root_cert_path),
        )
        LOGGER.info("Root CA certificate written: %s", root_cert_path)

        self.run("genrsa", "-out", str(leaf_key_path), str(config.key_size))
        self.run(
            "req", "-new",
            "-key", str(leaf_key_path),
            "-subj", build_dn_from_config(config, config.leaf_name).to_openssl_subject(),
            "-out", str(leaf_csr_path),
        )
        self.run(
            "x509", "-req",
            "-in", str(leaf_csr_path),
            "-CA", str(root_cert_path),
            "-CAkey", str(root_key_path),
            "-CAcreateserial",
            "-CAserial", str(serial_path),
            "-out", str(leaf_cert_path),
            "-days", str(config.leaf_validity_days),
            digest,
            "-extfile", str(ext_copy_path),
        )
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
            leaf_serial=format_serial(read_serial(serial_path)),
        )
