"""
128-bit iterated block digest used to derive rapid-upload proof offsets.

The backend checks proof codes against values computed by the vendor's web
client, which hashes the access token with its own hand-written routine. The
routine is reproduced here word for word instead of going through hashlib so
that its input handling (one octet per character, see ``to_octets``) stays
under our control.
"""

import struct
from typing import List, Union

MASK32 = 0xFFFFFFFF

INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476)

ROUND_CONSTANTS = (
    0xD76AA478, 0xE8C7B756, 0x242070DB, 0xC1BDCEEE,
    0xF57C0FAF, 0x4787C62A, 0xA8304613, 0xFD469501,
    0x698098D8, 0x8B44F7AF, 0xFFFF5BB1, 0x895CD7BE,
    0x6B901122, 0xFD987193, 0xA679438E, 0x49B40821,
    0xF61E2562, 0xC040B340, 0x265E5A51, 0xE9B6C7AA,
    0xD62F105D, 0x02441453, 0xD8A1E681, 0xE7D3FBC8,
    0x21E1CDE6, 0xC33707D6, 0xF4D50D87, 0x455A14ED,
    0xA9E3E905, 0xFCEFA3F8, 0x676F02D9, 0x8D2A4C8A,
    0xFFFA3942, 0x8771F681, 0x6D9D6122, 0xFDE5380C,
    0xA4BEEA44, 0x4BDECFA9, 0xF6BB4B60, 0xBEBFBC70,
    0x289B7EC6, 0xEAA127FA, 0xD4EF3085, 0x04881D05,
    0xD9D4D039, 0xE6DB99E5, 0x1FA27CF8, 0xC4AC5665,
    0xF4292244, 0x432AFF97, 0xAB9423A7, 0xFC93A039,
    0x655B59C3, 0x8F0CCC92, 0xFFEFF47D, 0x85845DD1,
    0x6FA87E4F, 0xFE2CE6E0, 0xA3014314, 0x4E0811A1,
    0xF7537E82, 0xBD3AF235, 0x2AD7D2BB, 0xEB86D391,
)

ROTATIONS = (
    (7, 12, 17, 22),
    (5, 9, 14, 20),
    (4, 11, 16, 23),
    (6, 10, 15, 21),
)

Message = Union[str, bytes, bytearray]


def _add32(*values: int) -> int:
    return sum(values) & MASK32


def _rotl32(value: int, amount: int) -> int:
    value &= MASK32
    return ((value << amount) | (value >> (32 - amount))) & MASK32


def _select(b: int, c: int, d: int) -> int:
    return (b & c) | (~b & d)


def _select_last(b: int, c: int, d: int) -> int:
    return (b & d) | (c & ~d)


def _parity(b: int, c: int, d: int) -> int:
    return b ^ c ^ d


def _or_not(b: int, c: int, d: int) -> int:
    return c ^ (b | (~d & MASK32))


# (round function, message word index for round i within the pass)
PASSES = (
    (_select, lambda i: i),
    (_select_last, lambda i: (5 * i + 1) % 16),
    (_parity, lambda i: (3 * i + 5) % 16),
    (_or_not, lambda i: (7 * i) % 16),
)


def to_octets(message: Message) -> bytes:
    """
    Narrow a message to the octets the digest consumes.

    Strings are narrowed one character at a time to the low 8 bits of the
    code point, so characters above U+00FF lose their high bits. Proof codes
    computed by the backend depend on this, do not switch to UTF-8.

    Args:
        message: Text or raw bytes

    Returns:
        Octets to pack
    """
    if isinstance(message, (bytes, bytearray)):
        return bytes(message)
    return bytes(ord(ch) & 0xFF for ch in message)


def pack_words(data: bytes) -> List[int]:
    """
    Pack octets into 32-bit words, four per word, little-endian.

    Args:
        data: Octets to pack

    Returns:
        Word list with ceil(len(data) / 4) entries (at least one)
    """
    words = [0] * (((len(data) - 1) >> 2) + 1 if data else 1)
    for index, octet in enumerate(data):
        words[index >> 2] |= octet << ((index % 4) * 8)
    return words


def compress(words: List[int], bit_length: int) -> List[int]:
    """
    Pad the packed message and run every 16-word block through the rounds.

    Args:
        words: Packed message words (see ``pack_words``)
        bit_length: Message length in bits, below 2**32

    Returns:
        The four accumulator words after the last block
    """
    block_count = ((bit_length + 64) >> 9) + 1
    padded = list(words) + [0] * (block_count * 16 - len(words))
    padded[bit_length >> 5] |= 0x80 << (bit_length % 32)
    padded[block_count * 16 - 2] = bit_length & MASK32

    a, b, c, d = INITIAL_STATE
    for start in range(0, len(padded), 16):
        block = padded[start:start + 16]
        saved = (a, b, c, d)

        for pass_index, (function, word_index) in enumerate(PASSES):
            shifts = ROTATIONS[pass_index]
            for i in range(16):
                step = pass_index * 16 + i
                mixed = _add32(a, function(b, c, d) & MASK32, ROUND_CONSTANTS[step], block[word_index(i)])
                a, b, c, d = d, _add32(b, _rotl32(mixed, shifts[i % 4])), b, c

        a = _add32(a, saved[0])
        b = _add32(b, saved[1])
        c = _add32(c, saved[2])
        d = _add32(d, saved[3])

    return [a, b, c, d]


def digest(message: Message) -> bytes:
    """
    Compute the 16-byte digest of a message.

    Args:
        message: Text (narrowed per character) or raw bytes

    Returns:
        Digest bytes, accumulator words in little-endian order
    """
    data = to_octets(message)
    state = compress(pack_words(data), 8 * len(data))
    return struct.pack('<4I', *state)


def hexdigest(message: Message) -> str:
    """
    Compute the digest of a message as 32 lowercase hex characters.

    Args:
        message: Text (narrowed per character) or raw bytes

    Returns:
        Lowercase hex string, high nibble first
    """
    return digest(message).hex()
