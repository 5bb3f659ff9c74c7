# oid.py -- Object id parsing and formatting
# Copyright (C) 2007 James Westby <jw+debian@jameswestby.net>
# Copyright (C) 2026 The gitbind authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# gitbind is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Conversion between binary object ids and their hex form."""

__all__ = [
    "HEXSZ",
    "RAWSZ",
    "Oid",
    "format_oid",
    "parse_oid",
    "valid_hexsha",
]

import binascii

from .errors import InvalidFormat

RAWSZ = 20
HEXSZ = 40

_HEXDIGITS = frozenset("0123456789abcdefABCDEF")


def valid_hexsha(hex: object) -> bool:
    """Check whether a value is a 40 character hex SHA."""
    return (
        isinstance(hex, str) and len(hex) == HEXSZ and _HEXDIGITS.issuperset(hex)
    )


class Oid:
    """A 20 byte object id.

    Equality and hashing are based on the raw bytes. ``str()`` gives the
    lowercase hex form.
    """

    __slots__ = ("raw",)

    raw: bytes

    def __init__(self, raw: bytes) -> None:
        """Create an Oid from its binary form.

        Args:
          raw: Exactly 20 bytes
        Raises:
          InvalidFormat: if raw is not 20 bytes
        """
        if not isinstance(raw, bytes) or len(raw) != RAWSZ:
            raise InvalidFormat(f"Invalid raw object id: {raw!r}", raw)
        object.__setattr__(self, "raw", raw)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def from_raw(cls, raw: bytes) -> "Oid":
        return cls(raw)

    @classmethod
    def from_hex(cls, hex: object) -> "Oid":
        """Parse a 40 character hex string."""
        return parse_oid(hex)

    @property
    def hex(self) -> str:
        """Lowercase hex form of this id."""
        return format_oid(self)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Oid):
            return self.raw == other.raw
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.raw)

    def __lt__(self, other: "Oid") -> bool:
        return self.raw < other.raw

    def __str__(self) -> str:
        return self.hex

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.hex!r})"


def parse_oid(hex: object) -> Oid:
    """Parse a hex SHA into an Oid.

    Args:
      hex: 40 hex digits, either case
    Returns: The parsed Oid
    Raises:
      InvalidFormat: if hex is not a str, or not exactly 40 hex digits
    """
    if not isinstance(hex, str):
        raise InvalidFormat(
            f"Hex SHA must be str, not {type(hex).__name__:.200}", hex
        )
    if not valid_hexsha(hex):
        raise InvalidFormat(f"Invalid hex SHA: {hex!r}", hex)
    return Oid(binascii.unhexlify(hex))


def format_oid(oid: Oid) -> str:
    """Format an Oid as 40 lowercase hex digits."""
    return binascii.hexlify(oid.raw).decode("ascii")
