"""
Byte codecs for the shell: hex-literal unescaping of user arguments and
double-quoted rendering of keys and values for output.
"""

from .errors import ParseError

_HEX_DIGITS = b"0123456789abcdefABCDEF"

_NAMED_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    '"': '\\"',
    "\\": "\\\\",
}


def unescape(s: str) -> bytes:
    """
    Turn hex literals into raw bytes: "\\x41" -> b"A", "\\\\" -> b"\\".
    A backslash before any other character is dropped. "\\x" without two
    following characters is kept as a plain "x".
    """
    raw = s.encode("utf-8")
    out = bytearray()
    pending = False  # previous byte was an unescaped backslash
    i = 0
    while i < len(raw):
        c = raw[i]
        if c == ord("\\"):
            if pending:
                out.append(c)
                pending = False
            else:
                pending = True
        elif c == ord("x") and pending:
            pending = False
            if i + 2 >= len(raw):
                out.append(c)
            else:
                digits = raw[i + 1:i + 3]
                if any(d not in _HEX_DIGITS for d in digits):
                    raise ParseError(f"invalid hex escape \\x{digits.decode('utf-8', 'replace')} in {s!r}")
                out.append(int(digits, 16))
                i += 2
        else:
            pending = False
            out.append(c)
        i += 1
    return bytes(out)


def quote(data: bytes) -> str:
    """Double-quoted, escaped rendering of data (same conventions as Go's %q)."""
    parts = ['"']
    for ch in data.decode("utf-8", errors="surrogateescape"):
        code = ord(ch)
        if 0xDC80 <= code <= 0xDCFF:
            # undecodable byte smuggled through surrogateescape
            parts.append(f"\\x{code - 0xDC00:02x}")
        elif ch in _NAMED_ESCAPES:
            parts.append(_NAMED_ESCAPES[ch])
        elif ch.isprintable():
            parts.append(ch)
        elif code < 0x20 or code == 0x7F:
            parts.append(f"\\x{code:02x}")
        elif code < 0x10000:
            parts.append(f"\\u{code:04x}")
        else:
            parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)
