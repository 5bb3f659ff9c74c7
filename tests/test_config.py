# test_config.py -- Tests for reading and writing configuration files
# Copyright (C) 2011 Jelmer Vernooij <jelmer@jelmer.uk>
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

"""Tests for reading and writing configuration files."""

import os
from io import BytesIO

from gitbind.config import ConfigFile, _format_value, _parse_value
from gitbind.file import FileLocked

from . import TestCase


class ConfigFileTests(TestCase):
    def from_file(self, text):
        return ConfigFile.from_file(BytesIO(text))

    def test_default_config(self) -> None:
        cf = self.from_file(
            b"""[core]
\trepositoryformatversion = 0
\tfilemode = true
\tbare = false
\tlogallrefupdates = true
"""
        )
        self.assertEqual(b"0", cf.get("core", "repositoryformatversion"))
        self.assertEqual(0, cf.get_int("core", "repositoryformatversion", 5))
        self.assertTrue(cf.get_boolean("core", "filemode"))
        self.assertFalse(cf.get_boolean("core", "bare"))

    def test_from_file_empty(self) -> None:
        cf = self.from_file(b"")
        self.assertRaises(KeyError, cf.get, "core", "bare")
        self.assertIsNone(cf.path)

    def test_comment_before_section(self) -> None:
        cf = self.from_file(b"# foo\n; bar\n\n[section]\nx = 1\n")
        self.assertEqual(b"1", cf.get("section", "x"))

    def test_comment_after_section(self) -> None:
        cf = self.from_file(b"[section] # foo\nx = 1\n")
        self.assertEqual(b"1", cf.get("section", "x"))

    def test_setting_after_section_header(self) -> None:
        cf = self.from_file(b"[core] bare = true\n")
        self.assertTrue(cf.get_boolean("core", "bare"))

    def test_comment_after_variable(self) -> None:
        cf = self.from_file(b"[section]\nbar= foo # a comment\n")
        self.assertEqual(b"foo", cf.get("section", "bar"))

    def test_comment_character_within_value_string(self) -> None:
        cf = self.from_file(b'[section]\nbar= "foo#bar"\n')
        self.assertEqual(b"foo#bar", cf.get("section", "bar"))

    def test_comment_character_within_section_string(self) -> None:
        cf = self.from_file(b'[branch "foo#bar"] # a comment\nbar= foo\n')
        self.assertEqual(b"foo", cf.get((b"branch", b"foo#bar"), b"bar"))

    def test_closing_bracket_within_section_string(self) -> None:
        cf = self.from_file(b'[branch "foo]bar"] # a comment\nbar= foo\n')
        self.assertEqual(b"foo", cf.get((b"branch", b"foo]bar"), b"bar"))

    def test_escaped_quote_within_section_string(self) -> None:
        cf = self.from_file(b'[branch "say \\"hi\\""]\nbar= foo\n')
        self.assertEqual(b"foo", cf.get((b"branch", b'say "hi"'), b"bar"))

    def test_from_file_utf8_bom(self) -> None:
        text = "[core]\nfoo = bär\n".encode("utf-8-sig")
        cf = self.from_file(text)
        self.assertEqual(b"b\xc3\xa4r", cf.get((b"core",), b"foo"))

    def test_from_file_crlf(self) -> None:
        cf = self.from_file(b"[core]\r\n\tbare = true\r\n")
        self.assertEqual(b"true", cf.get("core", "bare"))

    def test_from_file_section_case_insensitive(self) -> None:
        cf = self.from_file(b"[cOre]\nfOo = bar\n")
        self.assertEqual(b"bar", cf.get((b"core",), b"foo"))
        self.assertEqual(b"bar", cf.get((b"CORE",), b"FOO"))

    def test_from_file_subsection_case_sensitive(self) -> None:
        cf = self.from_file(b'[branch "Foo"]\nremote = origin\n')
        self.assertEqual(b"origin", cf.get(("branch", "Foo"), "remote"))
        self.assertRaises(KeyError, cf.get, ("branch", "foo"), "remote")

    def test_from_file_dotted_subsection(self) -> None:
        cf = self.from_file(b"[branch.master]\nremote = origin\n")
        self.assertEqual(b"origin", cf.get((b"branch", b"master"), b"remote"))

    def test_from_file_with_mixed_quoted(self) -> None:
        cf = self.from_file(b'[core]\nfoo = "bar"la\n')
        self.assertEqual(b"barla", cf.get((b"core",), b"foo"))

    def test_from_file_with_open_quoted(self) -> None:
        self.assertRaises(ValueError, self.from_file, b'[core]\nfoo = "bar\n')

    def test_from_file_with_quotes(self) -> None:
        cf = self.from_file(b'[core]\nfoo = " bar"\n')
        self.assertEqual(b" bar", cf.get((b"core",), b"foo"))

    def test_from_file_with_interrupted_line(self) -> None:
        cf = self.from_file(b"[core]\nfoo = bar\\\nla\n")
        self.assertEqual(b"barla", cf.get((b"core",), b"foo"))

    def test_from_file_with_escaped_trailing_backslash(self) -> None:
        cf = self.from_file(b"[core]\nfoo = bar\\\\\nbaz = 1\n")
        self.assertEqual(b"bar\\", cf.get((b"core",), b"foo"))
        self.assertEqual(b"1", cf.get((b"core",), b"baz"))

    def test_from_file_continuation_at_end(self) -> None:
        self.assertRaises(ValueError, self.from_file, b"[core]\nfoo = bar\\\n")

    def test_from_file_with_boolean_setting(self) -> None:
        cf = self.from_file(b"[core]\nfoo\nbar # comment\n")
        self.assertEqual(b"true", cf.get((b"core",), b"foo"))
        self.assertTrue(cf.get_boolean("core", "bar"))

    def test_from_file_setting_without_section(self) -> None:
        self.assertRaises(ValueError, self.from_file, b"foo = bar\n")

    def test_from_file_invalid_variable_name(self) -> None:
        self.assertRaises(ValueError, self.from_file, b"[core]\nfo_o = bar\n")
        self.assertRaises(ValueError, self.from_file, b"[core]\n1foo = bar\n")

    def test_from_file_invalid_section_name(self) -> None:
        self.assertRaises(ValueError, self.from_file, b"[co_re]\nfoo = bar\n")
        self.assertRaises(ValueError, self.from_file, b"[core\nfoo = bar\n")

    def test_get_missing(self) -> None:
        cf = ConfigFile()
        self.assertRaises(KeyError, cf.get, "core", "bare")
        self.assertIsNone(cf.get_boolean("core", "bare"))
        self.assertTrue(cf.get_boolean("core", "bare", True))
        self.assertEqual(7, cf.get_int("core", "compression", 7))

    def test_get_boolean_values(self) -> None:
        cf = ConfigFile()
        for value in ("true", "yes", "on", "1", "TRUE"):
            cf.set("core", "x", value)
            self.assertTrue(cf.get_boolean("core", "x"), value)
        for value in ("false", "no", "off", "0", ""):
            cf.set("core", "x", value)
            self.assertFalse(cf.get_boolean("core", "x"), value)

    def test_get_boolean_invalid(self) -> None:
        cf = ConfigFile()
        cf.set("core", "bare", "maybe")
        self.assertRaises(ValueError, cf.get_boolean, "core", "bare")

    def test_get_int(self) -> None:
        cf = self.from_file(b"[core]\n\tloosecompression = 9\n\tcompression = -1\n")
        self.assertEqual(9, cf.get_int("core", "loosecompression", 0))
        self.assertEqual(-1, cf.get_int("core", "compression", 0))

    def test_get_int_invalid(self) -> None:
        cf = ConfigFile()
        cf.set("core", "compression", "lots")
        self.assertRaises(ValueError, cf.get_int, "core", "compression", 0)

    def test_set_types(self) -> None:
        cf = ConfigFile()
        cf.set("core", "bare", True)
        cf.set("core", "filemode", False)
        cf.set("core", "compression", 9)
        cf.set((b"remote", b"origin"), b"url", "https://example.com/")
        self.assertEqual(b"true", cf.get("core", "bare"))
        self.assertEqual(b"false", cf.get("core", "filemode"))
        self.assertEqual(b"9", cf.get("CORE", "Compression"))
        self.assertEqual(
            b"https://example.com/", cf.get(("remote", "origin"), "url")
        )

    def test_write_to_file_empty(self) -> None:
        f = BytesIO()
        ConfigFile().write_to_file(f)
        self.assertEqual(b"", f.getvalue())

    def test_write_to_file_section(self) -> None:
        c = ConfigFile()
        c.set((b"core",), b"foo", b"bar")
        f = BytesIO()
        c.write_to_file(f)
        self.assertEqual(b"[core]\n\tfoo = bar\n", f.getvalue())

    def test_write_to_file_subsection(self) -> None:
        c = ConfigFile()
        c.set((b"branch", b'bl"ie'), b"foo", b"bar")
        f = BytesIO()
        c.write_to_file(f)
        self.assertEqual(b'[branch "bl\\"ie"]\n\tfoo = bar\n', f.getvalue())

    def test_write_to_path_roundtrip(self) -> None:
        path = os.path.join(self.mkdtemp(), "config")
        c = ConfigFile()
        c.set("core", "repositoryformatversion", 0)
        c.set("core", "comment", "has # hash")
        c.set(("branch", 'say "hi"'), "remote", " origin\t")
        c.write_to_path(path)
        cf = ConfigFile.from_path(path)
        self.assertEqual(path, cf.path)
        self.assertEqual(0, cf.get_int("core", "repositoryformatversion", 1))
        self.assertEqual(b"has # hash", cf.get("core", "comment"))
        self.assertEqual(b" origin\t", cf.get(("branch", 'say "hi"'), "remote"))
        self.assertFalse(os.path.exists(path + ".lock"))

    def test_write_to_path_default(self) -> None:
        self.assertRaises(ValueError, ConfigFile().write_to_path)
        path = os.path.join(self.mkdtemp(), "config")
        with open(path, "wb") as f:
            f.write(b"[core]\n\tbare = false\n")
        cf = ConfigFile.from_path(path)
        cf.set("core", "bare", True)
        cf.write_to_path()
        self.assertTrue(ConfigFile.from_path(path).get_boolean("core", "bare"))

    def test_write_to_path_locked(self) -> None:
        path = os.path.join(self.mkdtemp(), "config")
        with open(path + ".lock", "wb"):
            pass
        c = ConfigFile()
        c.set("core", "bare", True)
        self.assertRaises(FileLocked, c.write_to_path, path)
        self.assertFalse(os.path.exists(path))


class FormatValueTests(TestCase):
    def test_not_quoted(self) -> None:
        self.assertEqual(b"foo", _format_value(b"foo"))
        self.assertEqual(b"foo bar", _format_value(b"foo bar"))

    def test_escapes(self) -> None:
        self.assertEqual(b"foo\\\\", _format_value(b"foo\\"))
        self.assertEqual(b"foo\\n", _format_value(b"foo\n"))
        self.assertEqual(b'\\"foo\\"', _format_value(b'"foo"'))

    def test_quoted(self) -> None:
        self.assertEqual(b'" foo"', _format_value(b" foo"))
        self.assertEqual(b'"\\tfoo"', _format_value(b"\tfoo"))
        self.assertEqual(b'"a;b"', _format_value(b"a;b"))


class ParseValueTests(TestCase):
    def test_quoted(self) -> None:
        self.assertEqual(b" foo", _parse_value(b'" foo"'))
        self.assertEqual(b"\tfoo", _parse_value(b'"\\tfoo"'))

    def test_not_quoted(self) -> None:
        self.assertEqual(b"foo", _parse_value(b"foo"))
        self.assertEqual(b"foo bar", _parse_value(b"  foo bar  "))

    def test_nothing(self) -> None:
        self.assertEqual(b"", _parse_value(b""))

    def test_escapes(self) -> None:
        self.assertEqual(b"\tbar\t", _parse_value(b"\\tbar\\t"))
        self.assertEqual(b"\nbar\t", _parse_value(b"\\nbar\\t\t"))
        self.assertEqual(b'"foo"', _parse_value(b'\\"foo\\"'))

    def test_comment(self) -> None:
        self.assertEqual(b"foo", _parse_value(b"foo ; bar"))

    def test_unknown_escape(self) -> None:
        self.assertRaises(ValueError, _parse_value, b"\\x")

    def test_trailing_escape(self) -> None:
        self.assertRaises(ValueError, _parse_value, b"foo\\")
