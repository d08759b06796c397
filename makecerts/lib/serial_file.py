"""CA serial-number file handling (``-CAcreateserial`` semantics)."""

from pathlib import Path

from makecerts.lib.cert_utils import generate_serial_number


def format_serial(serial: int) -> str:
    """Uppercase hex with an even number of digits, as OpenSSL writes it."""
    serial_hex = f"{serial:X}"
    if len(serial_hex) % 2 != 0:
        serial_hex = "0" + serial_hex
    return serial_hex


def read_serial(path: Path) -> int:
    """Read the hex serial stored in ``path``.

    Raises:
        ValueError: If the file does not hold a hex number
    """
    text = path.read_text().strip()
    try:
        return int(text, 16)
    except ValueError:
        raise ValueError(f"invalid serial file {path}: {text!r}") from None


def next_serial(path: Path) -> int:
    """Serial for the next certificate signed by the CA.

    Continues from the stored value when the file exists, otherwise starts
    from a random serial.
    """
    if path.exists():
        return read_serial(path) + 1
    return generate_serial_number()


def write_serial(path: Path, serial: int) -> None:
    path.write_text(format_serial(serial) + "\n")
