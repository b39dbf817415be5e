"""Lenient JSON parser producing :class:`JsonValue` trees.

The grammar is the forgiving one of the embedded parser used for
configuration files: trailing commas in arrays and objects are accepted,
``\\x`` escapes other than the standard ones yield the character itself,
``\\uXXXX`` escapes are taken one code unit at a time, integers wrap at
64 bits, and C-style comments can be switched on.
"""

from __future__ import annotations

import math
import string as _string
from typing import Union

from relaykit.jsontypes import JsonType, JsonValue

__all__ = ["JsonParseError", "parse"]

_BOM = b"\xef\xbb\xbf"

_WHITESPACE = frozenset(b" \t\r\n")
_DIGITS = frozenset(b"0123456789")
_HEX_VALUES = {ord(c): int(c, 16) for c in _string.hexdigits}
_ESCAPES = {
    ord("b"): b"\b",
    ord("f"): b"\f",
    ord("n"): b"\n",
    ord("r"): b"\r",
    ord("t"): b"\t",
}

_NEWLINE = ord("\n")
_CR = ord("\r")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")
_SLASH = ord("/")
_STAR = ord("*")
_COMMA = ord(",")
_COLON = ord(":")
_LBRACE = ord("{")
_RBRACE = ord("}")
_LBRACKET = ord("[")
_RBRACKET = ord("]")
_PLUS = ord("+")
_MINUS = ord("-")
_DOT = ord(".")
_ZERO = ord("0")
_LOWER_E = ord("e")
_UPPER_E = ord("E")
_LOWER_U = ord("u")

# Storage accounted against ``max_memory``: one node per value while
# scanning, then the member tables and string bodies of the finished tree.
_VALUE_SIZE = 40
_POINTER_SIZE = 8
_MEMBER_SIZE = 24

_INT64_MASK = (1 << 64) - 1
_INT64_SIGN = 1 << 63


class JsonParseError(ValueError):
    """Raised when a document cannot be parsed."""

    def __init__(self, message: str, line: Union[int, None] = None,
                 column: Union[int, None] = None) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column


def _wrap_int64(value: int) -> int:
    value &= _INT64_MASK
    return value - (1 << 64) if value & _INT64_SIGN else value


def _pow10(exponent: int) -> float:
    try:
        return 10.0 ** exponent
    except OverflowError:
        return math.inf


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8", "surrogatepass")
    except UnicodeDecodeError:
        return raw.decode("utf-8", "replace")


def _byte_length(text: str) -> int:
    return len(text.encode("utf-8", "surrogatepass"))


def _storage_size(root: JsonValue) -> int:
    total = 0
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type is JsonType.ARRAY:
            total += _POINTER_SIZE * len(node.value)
            stack.extend(node.value)
        elif node.type is JsonType.OBJECT:
            total += _MEMBER_SIZE * len(node.value)
            for name, member in node.value:
                total += _byte_length(name) + 1
                stack.append(member)
        elif node.type is JsonType.STRING:
            total += _byte_length(node.value) + 1
    return total


class _Parser:
    """Single-pass state machine over the document bytes."""

    def __init__(self, data: bytes, enable_comments: bool, max_memory: int) -> None:
        self.data = data
        self.end = len(data)
        self.enable_comments = enable_comments
        self.max_memory = max_memory
        self.used_memory = 0

        self.pos = 0
        self.line = 1
        self.line_begin = 0

        self.top: Union[JsonValue, None] = None
        self.root: Union[JsonValue, None] = None

        self.in_string = False
        self.escaped = False
        self.string = bytearray()

        self.seek_value = True
        self.need_comma = False
        self.need_colon = False
        self.done = False
        self.value_done = False
        self.reproc = False
        self.line_comment = False
        self.block_comment = False

        self.num_negative = False
        self.num_zero = False
        self.num_e = False
        self.num_e_got_sign = False
        self.num_e_negative = False
        self.num_digits = 0
        self.num_fraction = 0
        self.num_exp = 0

    # -- helpers -----------------------------------------------------------

    def _byte(self, pos: int) -> int:
        return self.data[pos] if pos < self.end else 0

    @property
    def _column(self) -> int:
        return self.pos - self.line_begin

    def _fail(self, text: str) -> None:
        # A NUL in a formatted message ends it, as it would a C string.
        raise JsonParseError(text.split("\0", 1)[0], self.line, self._column)

    def _error(self, text: str) -> None:
        self._fail(f"{self.line}:{self._column}: {text}")

    def _whitespace(self, b: int) -> None:
        if b == _NEWLINE:
            self.line += 1
            self.line_begin = self.pos

    def _new_value(self, kind: JsonType, value) -> None:
        self.used_memory += _VALUE_SIZE
        if self.max_memory and self.used_memory > self.max_memory:
            raise JsonParseError("Memory allocation failure")
        node = JsonValue(kind, value, parent=self.top)
        if self.root is None:
            self.root = node
        self.top = node

    # -- main loop ---------------------------------------------------------

    def run(self) -> JsonValue:
        while not self._step():
            self.pos += 1
        assert self.root is not None
        if self.max_memory and self.used_memory + _storage_size(self.root) > self.max_memory:
            raise JsonParseError("Memory allocation failure")
        return self.root

    def _step(self) -> bool:
        """Handle the byte at the current position; True once finished."""
        b = self._byte(self.pos)

        if self.in_string:
            if self._string_byte(b):
                return False
            return self._finish()

        if self.enable_comments and self._comment_byte(b):
            return False

        if self.done:
            if b == 0:
                return True
            if b in _WHITESPACE:
                self._whitespace(b)
                return False
            self._error(f"Trailing garbage: `{chr(b)}`")

        if self.seek_value:
            return self._seek_byte(b)

        assert self.top is not None
        if self.top.type is JsonType.OBJECT:
            return self._object_byte(b)
        if self.top.type in (JsonType.INTEGER, JsonType.DOUBLE):
            return self._number_byte(b)
        return self._finish()

    def _finish(self) -> bool:
        if self.reproc:
            self.reproc = False
            self.pos -= 1
        if self.value_done:
            self.value_done = False
            self.need_comma = True
            top = self.top
            assert top is not None
            parent = top.parent
            if parent is None:
                self.done = True
                return False
            if parent.type is JsonType.ARRAY:
                self.seek_value = True
                parent.value.append(top)
            else:
                name, _ = parent.value[-1]
                parent.value[-1] = (name, top)
            self.top = parent
        return False

    # -- states ------------------------------------------------------------

    def _string_byte(self, b: int) -> bool:
        """Consume a byte inside a string; False when a string value closed."""
        if b == 0:
            self._fail(f"Unexpected EOF in string (at {self.line}:{self._column})")

        if self.escaped:
            self.escaped = False
            if b == _LOWER_U:
                self._unicode_escape()
            else:
                self.string += _ESCAPES.get(b, bytes((b,)))
            return True

        if b == _BACKSLASH:
            self.escaped = True
            return True

        if b != _QUOTE:
            self.string.append(b)
            return True

        self.in_string = False
        text = _decode(bytes(self.string))
        self.string = bytearray()
        assert self.top is not None
        if self.top.type is JsonType.STRING:
            self.top.value = text
            self.value_done = True
            return False

        self.top.value.append((text, None))
        self.seek_value = True
        self.need_colon = True
        return True

    def _unicode_escape(self) -> None:
        message = "Invalid character value `u` (at {}:{})"
        if self.end - self.pos < 4:
            self._fail(message.format(self.line, self._column))
        code = 0
        for _ in range(4):
            self.pos += 1
            digit = _HEX_VALUES.get(self._byte(self.pos))
            if digit is None:
                self._fail(message.format(self.line, self._column))
            code = code * 16 + digit
        self.string += chr(code).encode("utf-8", "surrogatepass")

    def _comment_byte(self, b: int) -> bool:
        """Handle comment syntax; True when the byte was consumed."""
        if self.line_comment:
            if b in (_CR, _NEWLINE, 0):
                self.line_comment = False
                self.pos -= 1
            return True

        if self.block_comment:
            if b == 0:
                self._error("Unexpected EOF in block comment")
            if b == _STAR and self.pos < self.end - 1 and self.data[self.pos + 1] == _SLASH:
                self.block_comment = False
                self.pos += 1
            return True

        if b != _SLASH:
            return False

        if not (self.seek_value or self.done) and self.top.type is not JsonType.OBJECT:
            self._error("Comment not allowed here")

        self.pos += 1
        if self.pos == self.end:
            self._error("EOF unexpected")

        b = self.data[self.pos]
        if b == _SLASH:
            self.line_comment = True
        elif b == _STAR:
            self.block_comment = True
        else:
            self._error(f"Unexpected `{chr(b)}` in comment opening sequence")
        return True

    def _seek_byte(self, b: int) -> bool:
        if b in _WHITESPACE:
            self._whitespace(b)
            return False

        if b == _RBRACKET:
            if self.top is not None and self.top.type is JsonType.ARRAY:
                self.need_comma = False
                self.seek_value = False
                self.value_done = True
            else:
                self._error("Unexpected ]")
            return self._finish()

        if self.need_comma:
            if b == _COMMA:
                self.need_comma = False
                return False
            self._error(f"Expected , before {chr(b)}")

        if self.need_colon:
            if b == _COLON:
                self.need_colon = False
                return False
            self._error(f"Expected : before {chr(b)}")

        self.seek_value = False
        return self._start_value(b)

    def _literal(self, word: bytes, min_remaining: int) -> None:
        start = self.pos
        if self.end - start < min_remaining:
            self._error("Unknown value")
        for offset, expected in enumerate(word[1:], start=1):
            self.pos = start + offset
            if self._byte(self.pos) != expected:
                self._error("Unknown value")

    def _start_value(self, b: int) -> bool:
        if b == _LBRACE:
            self._new_value(JsonType.OBJECT, [])
            return False

        if b == _LBRACKET:
            self._new_value(JsonType.ARRAY, [])
            self.seek_value = True
            return False

        if b == _QUOTE:
            self._new_value(JsonType.STRING, "")
            self.in_string = True
            self.string = bytearray()
            return False

        literal = {
            ord("t"): (b"true", 3, JsonType.BOOLEAN, True),
            ord("f"): (b"false", 4, JsonType.BOOLEAN, False),
            ord("n"): (b"null", 3, JsonType.NULL, None),
        }.get(b)
        if literal is not None:
            word, min_remaining, kind, value = literal
            self._literal(word, min_remaining)
            self._new_value(kind, value)
            self.value_done = True
            return self._finish()

        if b in _DIGITS or b == _MINUS:
            self._new_value(JsonType.INTEGER, 0)
            self.num_negative = False
            self.num_zero = False
            self.num_e = False
            self.num_e_got_sign = False
            self.num_e_negative = False
            self.num_digits = 0
            self.num_fraction = 0
            self.num_exp = 0
            if b != _MINUS:
                self.reproc = True
                return self._finish()
            self.num_negative = True
            return False

        self._error(f"Unexpected {chr(b)} when seeking value")
        return False

    def _object_byte(self, b: int) -> bool:
        if b in _WHITESPACE:
            self._whitespace(b)
            return False

        if b == _QUOTE:
            if self.need_comma:
                self._error('Expected , before "')
            self.in_string = True
            self.string = bytearray()
            return False

        if b == _RBRACE:
            self.need_comma = False
            self.value_done = True
            return self._finish()

        if b == _COMMA and self.need_comma:
            self.need_comma = False
            return False

        self._error(f"Unexpected `{chr(b)}` in object")
        return False

    def _number_byte(self, b: int) -> bool:
        top = self.top
        assert top is not None

        if b in _DIGITS:
            self.num_digits += 1
            digit = b - _ZERO
            if self.num_e:
                self.num_e_got_sign = True
                self.num_exp = _wrap_int64(self.num_exp * 10 + digit)
                return False
            if top.type is JsonType.INTEGER:
                if self.num_zero:
                    self._error(f"Unexpected `0` before `{chr(b)}`")
                if self.num_digits == 1 and b == _ZERO:
                    self.num_zero = True
                top.value = _wrap_int64(top.value * 10 + digit)
                return False
            self.num_fraction = _wrap_int64(self.num_fraction * 10 + digit)
            return False

        if b in (_PLUS, _MINUS):
            if self.num_e and not self.num_e_got_sign:
                self.num_e_got_sign = True
                if b == _MINUS:
                    self.num_e_negative = True
                return False
        elif b == _DOT and top.type is JsonType.INTEGER:
            if not self.num_digits:
                self._error("Expected digit before `.`")
            top.type = JsonType.DOUBLE
            top.value = float(top.value)
            self.num_digits = 0
            return False

        if not self.num_e:
            if top.type is JsonType.DOUBLE:
                if not self.num_digits:
                    self._error("Expected digit after `.`")
                top.value += self.num_fraction / _pow10(self.num_digits)
            if b in (_LOWER_E, _UPPER_E):
                self.num_e = True
                if top.type is JsonType.INTEGER:
                    top.type = JsonType.DOUBLE
                    top.value = float(top.value)
                self.num_digits = 0
                self.num_zero = False
                return False
        else:
            if not self.num_digits:
                self._error("Expected digit after `e`")
            exponent = -self.num_exp if self.num_e_negative else self.num_exp
            top.value *= _pow10(exponent)

        if self.num_negative:
            if top.type is JsonType.INTEGER:
                top.value = _wrap_int64(-top.value)
            else:
                top.value = -top.value

        self.value_done = True
        self.reproc = True
        return self._finish()


def parse(data: Union[bytes, bytearray, memoryview, str], *,
          enable_comments: bool = False, max_memory: int = 0) -> JsonValue:
    """Parse a JSON document and return the root value.

    ``max_memory`` caps the storage the parse may account for (0 for no
    limit). Raises :class:`JsonParseError` on any error.
    """
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    if raw.startswith(_BOM):
        raw = raw[len(_BOM):]
    return _Parser(raw, enable_comments, max_memory).run()