# SPDX-License-Identifier: Apache-2.0
"""ctypes conversions for pypdfium2's raw PDFium API.

PDFium passes text as FPDF_WIDESTRING: arrays of UTF-16LE code units
with a null terminator.
"""

import ctypes


def to_widestring(text: str) -> ctypes.Array:
    """Encode text as a null-terminated FPDF_WIDESTRING.

    Args:
        text: Text to encode

    Returns:
        ctypes array of c_ushort code units
    """
    data = (text + "\x00").encode("utf-16-le")
    units = [int.from_bytes(data[i : i + 2], "little") for i in range(0, len(data), 2)]
    return (ctypes.c_ushort * len(units))(*units)


def from_widestring(buffer: ctypes.Array, length: int) -> str:
    """Decode an FPDF_WIDESTRING buffer filled by PDFium.

    Args:
        buffer: ctypes array of c_ushort
        length: Code units reported by PDFium, terminator included

    Returns:
        Decoded text without the terminator
    """
    units = []
    for i in range(max(length - 1, 0)):
        if buffer[i] == 0:
            break
        units.append(buffer[i])
    data = b"".join(int(u).to_bytes(2, "little") for u in units)
    return data.decode("utf-16-le", errors="replace")
