"""Checks over a finished certificate output directory."""

from pathlib import Path

from cryptography.exceptions import InvalidSignature

from .cert_utils import (
    deserialize_certificate,
    deserialize_csr,
    deserialize_private_key,
    key_matches_certificate,
    validate_csr_signature,
    validity_days,
)
from .config import CertConfig
from .models import VerificationReport


def verify_output(output_dir: Path, config: CertConfig) -> VerificationReport:
    """Verify the artifacts of a run in ``output_dir``.

    Checks that every expected file exists and is non-empty (the extension
    copy may carry any ``*.ext`` name), the root is
    self-signed, the leaf is signed by the root and names it as issuer, the
    leaf key and CSR match the leaf certificate, and both validity periods
    match ``config``.

    Args:
        output_dir: Directory written by a previous run
        config: Configuration the run used

    Returns:
        VerificationReport listing every problem found
    """
    report = VerificationReport(output_dir=output_dir)

    ext_copy = output_dir / config.ext_file.name
    if not ext_copy.is_file() and output_dir.is_dir():
        # A run with --ext-file copies that file under its own name
        copies = sorted(output_dir.glob("*.ext"))
        if copies:
            ext_copy = copies[0]

    expected = [ext_copy, *config.output_files(output_dir)]
    for path in expected:
        if not path.is_file():
            report.problems.append(f"missing file: {path}")
        elif path.stat().st_size == 0:
            report.problems.append(f"empty file: {path}")
    if not report.ok:
        return report

    try:
        root_cert = deserialize_certificate(config.root_cert_path(output_dir).read_bytes())
        leaf_cert = deserialize_certificate(config.leaf_cert_path(output_dir).read_bytes())
        leaf_key = deserialize_private_key(config.leaf_key_path(output_dir).read_bytes())
        root_key = deserialize_private_key(config.root_key_path(output_dir).read_bytes())
        csr = deserialize_csr(config.leaf_csr_path(output_dir).read_bytes())
    except ValueError as e:
        report.problems.append(f"unreadable artifact: {e}")
        return report

    if root_cert.issuer != root_cert.subject:
        report.problems.append("root certificate is not self-issued")
    if leaf_cert.issuer != root_cert.subject:
        report.problems.append(
            f"leaf issuer {leaf_cert.issuer.rfc4514_string()} does not match "
            f"root subject {root_cert.subject.rfc4514_string()}"
        )

    for cert, name in ((root_cert, "root"), (leaf_cert, "leaf")):
        try:
            cert.verify_directly_issued_by(root_cert)
        except (InvalidSignature, ValueError, TypeError) as e:
            report.problems.append(f"{name} signature does not verify against root: {e!r}")

    if not key_matches_certificate(root_key, root_cert):
        report.problems.append("root key does not match root certificate")
    if not key_matches_certificate(leaf_key, leaf_cert):
        report.problems.append("leaf key does not match leaf certificate")
    if not validate_csr_signature(csr):
        report.problems.append("leaf CSR signature is invalid")
    elif csr.public_key().public_numbers() != leaf_cert.public_key().public_numbers():
        report.problems.append("leaf CSR and certificate carry different keys")

    for cert, name, days in (
        (root_cert, "root", config.root_validity_days),
        (leaf_cert, "leaf", config.leaf_validity_days),
    ):
        actual = validity_days(cert)
        if actual != days:
            report.problems.append(f"{name} validity is {actual} days, expected {days}")

    return report
