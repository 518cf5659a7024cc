"""
Byte decoding for uploaded exports.

Exports arrive as UTF-8, except WhatsApp on some Windows builds which writes
UTF-16LE with a byte-order mark.
"""

import codecs

UTF16_LE_BOM = codecs.BOM_UTF16_LE  # b"\xff\xfe"


def decode_bytes(data: bytes) -> str:
    """
    Decode an uploaded buffer into text.

    Buffers starting with ``FF FE`` are read as UTF-16LE, everything else as
    UTF-8. Malformed sequences are replaced rather than raised; the parsers
    are line and regex based and tolerate stray replacement characters.
    """
    if data.startswith(UTF16_LE_BOM):
        return data[len(UTF16_LE_BOM):].decode("utf-16-le", errors="replace")
    return data.decode("utf-8-sig", errors="replace")
