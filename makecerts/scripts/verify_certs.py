#!/usr/bin/env python3
"""Check a certificate output directory created by make_certs."""

import argparse
import sys
from pathlib import Path

from makecerts.lib.config import CertConfig
from makecerts.lib.logging_config import LOGGER
from makecerts.lib.verify import verify_output


def main(argv: list[str] | None = None) -> int:
    """Verify generated certificates.

    Returns:
        Exit code (0 when every check passes, 1 otherwise)
    """
    defaults = CertConfig()
    parser = argparse.ArgumentParser(description="Verify root CA and leaf certificate output")
    parser.add_argument("--output-dir", type=Path, default=defaults.output_dir)
    parser.add_argument("--leaf-name", default=defaults.leaf_name)
    parser.add_argument(
        "--ext-file",
        type=Path,
        default=None,
        help="Extension file the run used; only its name is checked (default: <leaf-name>.ext)",
    )
    parser.add_argument("--root-days", type=int, default=defaults.root_validity_days)
    parser.add_argument("--leaf-days", type=int, default=defaults.leaf_validity_days)
    args = parser.parse_args(argv)

    config = CertConfig(
        leaf_name=args.leaf_name,
        root_validity_days=args.root_days,
        leaf_validity_days=args.leaf_days,
        ext_file=Path((args.ext_file or Path(f"{args.leaf_name}.ext")).name),
    )

    report = verify_output(args.output_dir, config)
    for problem in report.problems:
        LOGGER.error("%s", problem)

    if not report.ok:
        LOGGER.error("Verification failed: %d problem(s)", len(report.problems))
        return 1

    LOGGER.info("All certificates in %s verified", args.output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
