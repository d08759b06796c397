#!/usr/bin/env python3
"""Create a root CA and an echo.test leaf certificate for TLS test fixtures."""

import argparse
import subprocess
import sys
from pathlib import Path

from makecerts.lib.cert_maker import CertMaker
from makecerts.lib.config import CertConfig
from makecerts.lib.extfile import ExtensionFileError
from makecerts.lib.logging_config import LOGGER, set_verbose
from makecerts.lib.openssl_runner import OpenSSLRunner
from makecerts.lib.verify import verify_output

BACKENDS = {
    "cryptography": CertMaker,
    "openssl": OpenSSLRunner,
}


def exit_status(returncode: int) -> int:
    """Shell-style exit status for a failed child: 128 + signal when killed."""
    if returncode < 0:
        return 128 - returncode
    return returncode or 1


def build_parser() -> argparse.ArgumentParser:
    defaults = CertConfig()
    parser = argparse.ArgumentParser(
        description="Create a self-signed root CA and a leaf certificate signed by it"
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=defaults.output_dir,
        help=f"Output directory for certificate artifacts (default: {defaults.output_dir})",
    )
    parser.add_argument(
        "--ext-file",
        type=Path,
        default=None,
        help="x509v3 extension file for the leaf (default: <leaf-name>.ext)",
    )
    parser.add_argument(
        "--leaf-name",
        default=defaults.leaf_name,
        help=f"Leaf common name and file stem (default: {defaults.leaf_name})",
    )
    parser.add_argument("--key-size", type=int, default=defaults.key_size)
    parser.add_argument("--root-days", type=int, default=defaults.root_validity_days)
    parser.add_argument("--leaf-days", type=int, default=defaults.leaf_validity_days)
    parser.add_argument(
        "--backend",
        choices=sorted(BACKENDS),
        default="cryptography",
        help="Generate with the cryptography library or the openssl binary",
    )
    parser.add_argument(
        "--openssl",
        default=defaults.openssl_binary,
        help="openssl binary for the openssl backend",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Check the output directory after generating",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Generate the root CA and leaf certificate.

    Returns:
        Exit code (0 for success, openssl's exit status if it failed,
        1 for any other failure)
    """
    args = build_parser().parse_args(argv)
    set_verbose(args.verbose)

    ext_file = args.ext_file or Path(f"{args.leaf_name}.ext")
    config = CertConfig(
        leaf_name=args.leaf_name,
        root_validity_days=args.root_days,
        leaf_validity_days=args.leaf_days,
        key_size=args.key_size,
        output_dir=args.output_dir,
        ext_file=ext_file,
        openssl_binary=args.openssl,
    )

    try:
        maker = BACKENDS[args.backend](config)

        LOGGER.info("Creating certificates in %s (%s backend)", args.output_dir, args.backend)
        result = maker.make_certs(args.output_dir, ext_file)

        LOGGER.info("Root CA created:")
        LOGGER.info("  Key: %s", result.root_key_path)
        LOGGER.info("  Cert: %s", result.root_cert_path)
        LOGGER.info("Leaf certificate created:")
        LOGGER.info("  Key: %s", result.leaf_key_path)
        LOGGER.info("  CSR: %s", result.leaf_csr_path)
        LOGGER.info("  Cert: %s", result.leaf_cert_path)
        LOGGER.info("  Serial: %s", result.leaf_serial)

        if args.verify:
            report = verify_output(args.output_dir, config)
            for problem in report.problems:
                LOGGER.error("Verification: %s", problem)
            if not report.ok:
                return 1
            LOGGER.info("Verification passed")

        return 0

    except subprocess.CalledProcessError as e:
        LOGGER.error("openssl step failed: %s", e)
        return exit_status(e.returncode)
    except FileNotFoundError as e:
        LOGGER.error("Input not found: %s", e)
        return 1
    except ExtensionFileError as e:
        LOGGER.error("Invalid extension file: %s", e)
        return 1
    except Exception as e:
        LOGGER.error("Certificate generation failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
