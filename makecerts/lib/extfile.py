"""OpenSSL x509v3 extension file (``-extfile``) reader.

Understands the subset of the OpenSSL config syntax used by leaf extension
files::

    authorityKeyIdentifier = keyid,issuer
    basicConstraints = CA:FALSE
    keyUsage = digitalSignature, keyEncipherment
    subjectAltName = @alt_names

    [alt_names]
    DNS.1 = echo.test

Extensions are read from the default (unnamed) section, as ``openssl x509
-req -extfile`` does when no ``-extensions`` section is given.
"""

import ipaddress
import re
from dataclasses import dataclass, field
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.types import CertificatePublicKeyTypes
from cryptography.x509 import oid

DEFAULT_SECTION = "default"

_SECTION_RE = re.compile(r"^\[\s*([^\]]+?)\s*\]$")

_KEY_USAGE_FLAGS = {
    "digitalSignature": "digital_signature",
    "nonRepudiation": "content_commitment",
    "contentCommitment": "content_commitment",
    "keyEncipherment": "key_encipherment",
    "dataEncipherment": "data_encipherment",
    "keyAgreement": "key_agreement",
    "keyCertSign": "key_cert_sign",
    "cRLSign": "crl_sign",
    "encipherOnly": "encipher_only",
    "decipherOnly": "decipher_only",
}

_EXTENDED_KEY_USAGES = {
    "serverAuth": oid.ExtendedKeyUsageOID.SERVER_AUTH,
    "clientAuth": oid.ExtendedKeyUsageOID.CLIENT_AUTH,
    "codeSigning": oid.ExtendedKeyUsageOID.CODE_SIGNING,
    "emailProtection": oid.ExtendedKeyUsageOID.EMAIL_PROTECTION,
    "timeStamping": oid.ExtendedKeyUsageOID.TIME_STAMPING,
    "OCSPSigning": oid.ExtendedKeyUsageOID.OCSP_SIGNING,
}

_TRUE_VALUES = {"true", "yes", "y"}
_FALSE_VALUES = {"false", "no", "n"}

_DOTTED_OID_RE = re.compile(r"^\d+(\.\d+)+$")


class ExtensionFileError(ValueError):
    """Raised when an extension file cannot be understood."""


@dataclass
class ExtensionEntry:
    """One ``name = value`` extension line.

    ``value`` is None for key identifier extensions, which depend on the
    keys involved and are resolved at signing time from ``options``.
    """

    name: str
    critical: bool
    value: x509.ExtensionType | None = None
    options: tuple[str, ...] = ()


@dataclass
class ExtensionFile:
    """Parsed extension file."""

    path: Path
    entries: list[ExtensionEntry] = field(default_factory=list)

    def declares(self, name: str) -> bool:
        """True when the file names extension ``name`` (even as ``none``)."""
        return any(entry.name == name for entry in self.entries)

    def suppressed_extensions(self) -> frozenset[type[x509.ExtensionType]]:
        """Key identifier extensions the file turns off with ``none``."""
        suppressed: set[type[x509.ExtensionType]] = set()
        for entry in self.entries:
            if "none" not in entry.options:
                continue
            if entry.name == "subjectKeyIdentifier":
                suppressed.add(x509.SubjectKeyIdentifier)
            elif entry.name == "authorityKeyIdentifier":
                suppressed.add(x509.AuthorityKeyIdentifier)
        return frozenset(suppressed)

    def to_x509_extensions(
        self,
        subject_public_key: CertificatePublicKeyTypes,
        issuer_cert: x509.Certificate,
    ) -> list[tuple[x509.ExtensionType, bool]]:
        """Resolve every entry into ``(extension, critical)`` pairs.

        Args:
            subject_public_key: Public key of the certificate being signed
            issuer_cert: Certificate of the signing CA

        Returns:
            Extensions in file order; ``none`` key identifiers are dropped
        """
        resolved = []
        for entry in self.entries:
            if entry.name == "subjectKeyIdentifier":
                extension = _subject_key_identifier(entry.options, subject_public_key)
            elif entry.name == "authorityKeyIdentifier":
                extension = _authority_key_identifier(entry.options, issuer_cert)
            else:
                extension = entry.value
            if extension is not None:
                resolved.append((extension, entry.critical))
        return resolved


def load_extension_file(path: Path) -> ExtensionFile:
    """Read and validate an extension file.

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ExtensionFileError: If the file holds unsupported or malformed content
    """
    if not path.is_file():
        raise FileNotFoundError(f"extension file not found: {path}")
    return parse_extension_file(path.read_text(), path=path)


def parse_extension_file(text: str, path: Path = Path("<string>")) -> ExtensionFile:
    """Parse extension file ``text``; see :func:`load_extension_file`."""
    sections = _parse_sections(text, path)
    ext_file = ExtensionFile(path=path)

    for name, value in sections[DEFAULT_SECTION]:
        if ext_file.declares(name):
            raise ExtensionFileError(f"{path}: duplicate extension {name}")
        critical, tokens = _split_critical(value)
        ext_file.entries.append(_parse_entry(name, critical, tokens, sections, path))

    return ext_file


def _parse_sections(text: str, path: Path) -> dict[str, list[tuple[str, str]]]:
    sections: dict[str, list[tuple[str, str]]] = {DEFAULT_SECTION: []}
    current = DEFAULT_SECTION

    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.split("#", 1)[0].strip()
        if not line or line.startswith(";"):
            continue

        match = _SECTION_RE.match(line)
        if match:
            current = match.group(1)
            sections.setdefault(current, [])
            continue

        if "=" not in line:
            raise ExtensionFileError(f"{path}:{lineno}: expected 'name = value', got {line!r}")
        name, value = line.split("=", 1)
        name = name.strip()
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        if not name:
            raise ExtensionFileError(f"{path}:{lineno}: missing name")
        sections[current].append((name, value))

    return sections


def _split_critical(value: str) -> tuple[bool, list[str]]:
    tokens = [token.strip() for token in value.split(",") if token.strip()]
    if tokens and tokens[0] == "critical":
        return True, tokens[1:]
    return False, tokens


def _parse_entry(
    name: str,
    critical: bool,
    tokens: list[str],
    sections: dict[str, list[tuple[str, str]]],
    path: Path,
) -> ExtensionEntry:
    if not tokens:
        raise ExtensionFileError(f"{path}: {name} has no value")

    try:
        if name == "basicConstraints":
            return ExtensionEntry(name, critical, _basic_constraints(tokens))
        if name == "keyUsage":
            return ExtensionEntry(name, critical, _key_usage(tokens))
        if name == "extendedKeyUsage":
            return ExtensionEntry(name, critical, _extended_key_usage(tokens))
        if name == "subjectAltName":
            return ExtensionEntry(name, critical, _subject_alt_name(tokens, sections))
        if name == "subjectKeyIdentifier":
            if tokens not in (["hash"], ["none"]):
                raise ExtensionFileError(f"subjectKeyIdentifier must be hash or none, got {tokens}")
            return ExtensionEntry(name, critical, options=tuple(tokens))
        if name == "authorityKeyIdentifier":
            allowed = {"keyid", "keyid:always", "issuer", "issuer:always", "none"}
            unknown = [token for token in tokens if token not in allowed]
            if unknown:
                raise ExtensionFileError(f"unknown authorityKeyIdentifier option(s): {unknown}")
            return ExtensionEntry(name, critical, options=tuple(tokens))
    except ExtensionFileError as e:
        raise ExtensionFileError(f"{path}: {e}") from None
    except ValueError as e:
        # cryptography rejects inconsistent combinations with ValueError
        raise ExtensionFileError(f"{path}: invalid {name}: {e}") from e

    raise ExtensionFileError(f"{path}: unsupported extension {name}")


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ExtensionFileError(f"expected boolean, got {value!r}")


def _basic_constraints(tokens: list[str]) -> x509.BasicConstraints:
    ca = False
    path_length = None
    for token in tokens:
        key, _, value = token.partition(":")
        key = key.strip().lower()
        if key == "ca":
            ca = _parse_bool(value.strip())
        elif key == "pathlen":
            try:
                path_length = int(value)
            except ValueError:
                raise ExtensionFileError(f"invalid pathlen {value!r}") from None
        else:
            raise ExtensionFileError(f"unknown basicConstraints option {token!r}")
    if not ca:
        path_length = None
    return x509.BasicConstraints(ca=ca, path_length=path_length)


def _key_usage(tokens: list[str]) -> x509.KeyUsage:
    flags = dict.fromkeys(_KEY_USAGE_FLAGS.values(), False)
    for token in tokens:
        if token not in _KEY_USAGE_FLAGS:
            raise ExtensionFileError(f"unknown keyUsage {token!r}")
        flags[_KEY_USAGE_FLAGS[token]] = True
    return x509.KeyUsage(**flags)


def _extended_key_usage(tokens: list[str]) -> x509.ExtendedKeyUsage:
    usages = []
    for token in tokens:
        if token in _EXTENDED_KEY_USAGES:
            usages.append(_EXTENDED_KEY_USAGES[token])
        elif _DOTTED_OID_RE.match(token):
            usages.append(x509.ObjectIdentifier(token))
        else:
            raise ExtensionFileError(f"unknown extendedKeyUsage {token!r}")
    return x509.ExtendedKeyUsage(usages)


def _subject_alt_name(
    tokens: list[str], sections: dict[str, list[tuple[str, str]]]
) -> x509.SubjectAlternativeName:
    names: list[x509.GeneralName] = []
    for token in tokens:
        if token.startswith("@"):
            section = token[1:].strip()
            if section not in sections:
                raise ExtensionFileError(f"subjectAltName section [{section}] not found")
            for key, value in sections[section]:
                # DNS.1, DNS.2, ... ; the suffix only keeps keys unique
                names.append(_general_name(key.split(".", 1)[0], value))
        else:
            kind, sep, value = token.partition(":")
            if not sep:
                raise ExtensionFileError(f"subjectAltName entry {token!r} needs a type prefix")
            names.append(_general_name(kind, value))
    return x509.SubjectAlternativeName(names)


def _general_name(kind: str, value: str) -> x509.GeneralName:
    kind = kind.strip()
    value = value.strip()
    if kind == "DNS":
        return x509.DNSName(value)
    if kind == "IP":
        try:
            return x509.IPAddress(ipaddress.ip_address(value))
        except ValueError:
            raise ExtensionFileError(f"invalid IP address {value!r}") from None
    if kind == "email":
        return x509.RFC822Name(value)
    if kind == "URI":
        return x509.UniformResourceIdentifier(value)
    raise ExtensionFileError(f"unsupported subjectAltName type {kind!r}")


def _subject_key_identifier(
    options: tuple[str, ...], subject_public_key: CertificatePublicKeyTypes
) -> x509.SubjectKeyIdentifier | None:
    if options == ("none",):
        return None
    return x509.SubjectKeyIdentifier.from_public_key(subject_public_key)


def _authority_key_identifier(
    options: tuple[str, ...], issuer_cert: x509.Certificate
) -> x509.AuthorityKeyIdentifier | None:
    if "none" in options:
        return None

    key_identifier = None
    if "keyid" in options or "keyid:always" in options:
        try:
            ski = issuer_cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier).value
            key_identifier = ski.digest
        except x509.ExtensionNotFound:
            key_identifier = x509.SubjectKeyIdentifier.from_public_key(
                issuer_cert.public_key()
            ).digest

    # Without :always, issuer/serial are only used when no key id is available
    with_issuer = "issuer:always" in options or ("issuer" in options and key_identifier is None)
    if with_issuer:
        return x509.AuthorityKeyIdentifier(
            key_identifier=key_identifier,
            authority_cert_issuer=[x509.DirectoryName(issuer_cert.issuer)],
            authority_cert_serial_number=issuer_cert.serial_number,
        )
    return x509.AuthorityKeyIdentifier(
        key_identifier=key_identifier,
        authority_cert_issuer=None,
        authority_cert_serial_number=None,
    )
