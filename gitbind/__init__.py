# __init__.py -- The gitbind package
# Copyright (C) 2007 James Westby <jw+debian@jameswestby.net>
# Copyright (C) 2008 Jelmer Vernooij <jelmer@jelmer.uk>
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

"""Object-level access to git repositories."""

__version__ = (0, 1, 0)

__all__ = [
    "GIT_OBJ_ANY",
    "GIT_OBJ_BLOB",
    "GIT_OBJ_COMMIT",
    "GIT_OBJ_TAG",
    "GIT_OBJ_TREE",
    "Blob",
    "Commit",
    "GitError",
    "Object",
    "Oid",
    "Ownership",
    "Repository",
    "Tag",
    "Tree",
    "TreeEntry",
    "__version__",
]

GIT_OBJ_ANY = -2
GIT_OBJ_COMMIT = 1
GIT_OBJ_TREE = 2
GIT_OBJ_BLOB = 3
GIT_OBJ_TAG = 4

from .errors import GitError  # noqa: E402
from .handles import Blob, Commit, Object, Ownership, Tag  # noqa: E402
from .oid import Oid  # noqa: E402
from .repo import Repository  # noqa: E402
from .tree import Tree, TreeEntry  # noqa: E402
