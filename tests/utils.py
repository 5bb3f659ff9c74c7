# utils.py -- Test utilities for gitbind.
# Copyright (C) 2010 Google, Inc.
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

"""Utility functions common to gitbind tests."""

import os
import zlib
from hashlib import sha1

from gitbind.handles import Blob, Commit, Tag
from gitbind.repo import Repository
from gitbind.tree import Tree

F = 0o100644  # Shorthand mode for Files.
D = 0o040000  # Shorthand mode for Directories.

AUTHOR = ("Jane Doe", "jane@example.com", 1262304000)
COMMITTER = ("Joe Bloggs", "joe@example.com", 1262307600)


def open_bare_repo(testcase) -> Repository:
    """Create an empty bare repository in a temporary directory.

    The directory is removed and the repository closed after the test.
    """
    path = os.path.join(testcase.mkdtemp(), "repo.git")
    repo = Repository.init_bare(path)
    testcase.addCleanup(repo.close)
    return repo


def write_loose_file(
    repo: Repository, hex: str, text: bytes, compress: bool = True
) -> None:
    """Write a loose object file at hex without checking its contents.

    Args:
      repo: Repository to write to
      hex: Id to store the file under
      text: Full object text, including the "<type> <size>\\0" header
      compress: Whether to zlib compress text
    """
    dirname = os.path.join(repo.controldir, "objects", hex[:2])
    os.makedirs(dirname, exist_ok=True)
    with open(os.path.join(dirname, hex[2:]), "wb") as f:
        f.write(zlib.compress(text) if compress else text)


def object_text(type_name: bytes, payload: bytes) -> bytes:
    return type_name + b" " + str(len(payload)).encode("ascii") + b"\0" + payload


def object_hex(type_name: bytes, payload: bytes) -> str:
    """Compute the id git would give an object."""
    return sha1(object_text(type_name, payload)).hexdigest()


def tag_payload(target_hex: str, target_type: bytes, name: bytes = b"v1.0") -> bytes:
    return (
        b"object " + target_hex.encode("ascii") + b"\n"
        b"type " + target_type + b"\n"
        b"tag " + name + b"\n"
        b"tagger Joe Bloggs <joe@example.com> 1262307600 +0100\n"
        b"\n"
        b"Release " + name + b"\n"
    )


def make_blob(repo: Repository, data: bytes) -> Blob:
    """Create and write a blob."""
    blob = Blob(repo)
    blob.data = data
    blob.write()
    return blob


def make_tree(repo: Repository, entries: list[tuple[str, str, int]]) -> Tree:
    """Create and write a tree from (name, hex, mode) tuples."""
    tree = Tree(repo)
    for name, hex, mode in entries:
        tree.add_entry(hex, name, mode)
    tree.write()
    return tree


def make_commit(
    repo: Repository,
    message: str = "Initial commit\n",
    tree: str | None = None,
    parents: list[str] | None = None,
) -> Commit:
    """Create and write a commit with fixed author and committer."""
    commit = Commit(repo)
    commit.message = message
    commit.author = AUTHOR
    commit.committer = COMMITTER
    if tree is not None:
        commit.tree = tree
    if parents is not None:
        commit.parents = parents
    commit.write()
    return commit


def make_tag(repo: Repository, target, name: str = "v1.0") -> Tag:
    """Create and write a tag pointing at target."""
    tag = Tag(repo)
    tag.target = target
    tag.name = name
    tag.tagger = COMMITTER
    tag.message = f"Release {name}\n"
    tag.write()
    return tag
