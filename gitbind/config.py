# config.py -- Settings from a repository's config file
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

"""Reading and writing the repository ``config`` file.

The object store reads a handful of ``core.*`` settings when a repository
is opened, and :meth:`NativeRepository.init_bare` writes the config of a
new repository. That is all this module covers: sections with an optional
quoted subsection, comments, quoted and escaped values, and backslash line
continuations. Includes are not followed.

Section and variable names are case-insensitive, subsection names are not.
"""

__all__ = [
    "ConfigFile",
]

import os
import re
from typing import IO, overload

from .file import LockedFile

Section = tuple[bytes, ...]
SectionLike = bytes | str | tuple[bytes | str, ...]
NameLike = bytes | str

_SECTION_RE = re.compile(
    rb'\[\s*([A-Za-z0-9.-]+)(?:\s+"((?:[^"\\\n]|\\.)*)")?\s*\]'
)
_NAME_RE = re.compile(rb"[A-Za-z][A-Za-z0-9-]*\Z")
_COMMENT_START = (b"#", b";")
_ESCAPES = {b"\\": b"\\", b'"': b'"', b"n": b"\n", b"t": b"\t", b"b": b"\b"}
_NEEDS_QUOTES_RE = re.compile(rb"\A[ \t]|[ \t]\Z|[#;]")


def _parse_value(text: bytes) -> bytes:
    """Unquote and unescape a value, dropping any trailing comment."""
    ret = bytearray()
    # Whitespace outside quotes only counts if more of the value follows.
    blanks = bytearray()
    quoted = False
    i = 0
    text = text.strip()
    while i < len(text):
        c = text[i : i + 1]
        i += 1
        if c == b"\\":
            if i >= len(text):
                raise ValueError("escape character at end of value")
            escaped = _ESCAPES.get(text[i : i + 1])
            if escaped is None:
                raise ValueError(f"unknown escape sequence \\{chr(text[i])}")
            i += 1
            c = escaped
        elif c == b'"':
            quoted = not quoted
            continue
        elif not quoted and c in _COMMENT_START:
            break
        elif not quoted and c in (b" ", b"\t"):
            blanks += c
            continue
        ret += blanks
        blanks.clear()
        ret += c
    if quoted:
        raise ValueError("missing end quote")
    return bytes(ret)


def _format_value(value: bytes) -> bytes:
    escaped = (
        value.replace(b"\\", b"\\\\")
        .replace(b"\n", b"\\n")
        .replace(b"\t", b"\\t")
        .replace(b'"', b'\\"')
    )
    if _NEEDS_QUOTES_RE.search(value):
        return b'"' + escaped + b'"'
    return escaped


def _section_key(match: re.Match[bytes]) -> Section:
    name, subsection = match.group(1, 2)
    if subsection is not None:
        return (name.lower(), re.sub(rb"\\(.)", rb"\1", subsection))
    # Old style "[branch.master]" headers.
    base, dot, rest = name.partition(b".")
    if dot:
        return (base.lower(), rest)
    return (name.lower(),)


def _odd_backslashes(text: bytes) -> bool:
    return (len(text) - len(text.rstrip(b"\\"))) % 2 == 1


class ConfigFile:
    """A repository's ``config`` file."""

    encoding = "utf-8"

    def __init__(self) -> None:
        self.path: str | None = None
        self._values: dict[Section, dict[bytes, bytes]] = {}

    def _section(self, section: SectionLike) -> Section:
        if not isinstance(section, tuple):
            section = (section,)
        parts = tuple(
            p.encode(self.encoding) if isinstance(p, str) else p for p in section
        )
        return (parts[0].lower(),) + parts[1:]

    def _name(self, name: NameLike) -> bytes:
        if isinstance(name, str):
            name = name.encode(self.encoding)
        return name.lower()

    def get(self, section: SectionLike, name: NameLike) -> bytes:
        """Retrieve the raw contents of a setting.

        Args:
          section: Section name, or tuple of section and subsection name
          name: Variable name
        Raises:
          KeyError: if the setting is not present
        """
        return self._values[self._section(section)][self._name(name)]

    @overload
    def get_boolean(
        self, section: SectionLike, name: NameLike, default: bool
    ) -> bool: ...

    @overload
    def get_boolean(self, section: SectionLike, name: NameLike) -> bool | None: ...

    def get_boolean(
        self, section: SectionLike, name: NameLike, default: bool | None = None
    ) -> bool | None:
        """Retrieve a setting as a boolean.

        Returns: The setting, or default when it is not present
        Raises:
          ValueError: if the value is not a boolean git understands
        """
        try:
            value = self.get(section, name).lower()
        except KeyError:
            return default
        if value in (b"true", b"yes", b"on", b"1"):
            return True
        if value in (b"false", b"no", b"off", b"0", b""):
            return False
        raise ValueError(f"not a valid boolean string: {value!r}")

    def get_int(self, section: SectionLike, name: NameLike, default: int) -> int:
        try:
            value = self.get(section, name)
        except KeyError:
            return default
        return int(value)

    def set(
        self, section: SectionLike, name: NameLike, value: bytes | str | bool | int
    ) -> None:
        if isinstance(value, bool):
            value = b"true" if value else b"false"
        elif isinstance(value, int):
            value = str(value).encode("ascii")
        elif isinstance(value, str):
            value = value.encode(self.encoding)
        self._values.setdefault(self._section(section), {})[self._name(name)] = value

    @classmethod
    def from_file(cls, f: IO[bytes]) -> "ConfigFile":
        """Read configuration from a binary file-like object.

        Raises:
          ValueError: if the contents are not valid config syntax
        """
        ret = cls()
        section: Section | None = None
        # Variable name and text so far of a value continued on the next line.
        pending: tuple[bytes, bytes] | None = None
        for lineno, line in enumerate(f, 1):
            if lineno == 1:
                line = line.removeprefix(b"\xef\xbb\xbf")
            line = line.rstrip(b"\r\n")
            if pending is not None:
                name, text = pending
                text += line
            else:
                line = line.strip()
                if line.startswith(b"["):
                    m = _SECTION_RE.match(line)
                    if m is None:
                        raise ValueError(f"line {lineno}: invalid section header")
                    section = _section_key(m)
                    ret._values.setdefault(section, {})
                    line = line[m.end() :].lstrip()
                if not line or line.startswith(_COMMENT_START):
                    continue
                if section is None:
                    raise ValueError(f"line {lineno}: setting outside of a section")
                name, sep, text = line.partition(b"=")
                if not sep:
                    name = re.split(rb"[#;]", name, maxsplit=1)[0]
                    text = b"true"
                name = name.strip()
                if not _NAME_RE.match(name):
                    raise ValueError(f"line {lineno}: invalid variable name {name!r}")
            if _odd_backslashes(text):
                pending = (name, text[:-1])
                continue
            assert section is not None
            ret._values[section][name.lower()] = _parse_value(text)
            pending = None
        if pending is not None:
            raise ValueError("line continuation at end of file")
        return ret

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> "ConfigFile":
        with open(path, "rb") as f:
            ret = cls.from_file(f)
        ret.path = os.fspath(path)
        return ret

    def write_to_file(self, f: IO[bytes]) -> None:
        for section, values in self._values.items():
            if len(section) > 1:
                subsection = section[1].replace(b"\\", b"\\\\").replace(b'"', b'\\"')
                f.write(b"[" + section[0] + b' "' + subsection + b'"]\n')
            else:
                f.write(b"[" + section[0] + b"]\n")
            for name, value in values.items():
                f.write(b"\t" + name + b" = " + _format_value(value) + b"\n")

    def write_to_path(self, path: str | os.PathLike[str] | None = None) -> None:
        """Replace the file at path, or the one this was read from.

        Raises:
          ValueError: if no path is given and the config was not read from one
          FileLocked: if the config file is locked by another writer
        """
        if path is None:
            if self.path is None:
                raise ValueError("No path specified and no default path available")
            path = self.path
        with LockedFile(path) as f:
            self.write_to_file(f)
