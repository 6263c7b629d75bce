# utils.py -- Test utilities for lfsgate
# Copyright (C) 2026 The lfsgate Authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# lfsgate is dual-licensed under the Apache License, Version 2.0 and the GNU
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

"""Utility functions common to lfsgate tests."""

import hashlib
from collections.abc import Mapping
from typing import Optional, Union

from dulwich.index import commit_tree
from dulwich.objects import Blob, Commit

from lfsgate.existence import MemoryPresenceIndex
from lfsgate.pointer import LFSPointer
from lfsgate.scanner import GitRepositoryReader

# Plain files are very frequently used in tests, so let the mode be very short.
F = 0o100644  # Shorthand mode for Files.
SYMLINK = 0o120000
GITLINK = 0o160000

DEFAULT_TIME = 1262304000  # 2010-01-01


def make_oid(marker: Union[bytes, str]) -> str:
    """Make a realistic LFS oid for test content."""
    if isinstance(marker, str):
        marker = marker.encode("utf-8")
    return hashlib.sha256(marker).hexdigest()


def pointer_data(oid: str, size: int = 12345) -> bytes:
    return LFSPointer(oid, size).to_bytes()


def make_commit(
    object_store,
    files: Mapping[bytes, Union[bytes, tuple[bytes, int]]],
    parents: Optional[list[bytes]] = None,
    message: bytes = b"Test message.",
) -> Commit:
    """Create a commit with the given files and add it to a store.

    Args:
      object_store: Store to add the commit, its tree and its blobs to
      files: Dictionary mapping paths to contents, or (contents, mode)
        tuples. For submodules, contents is the commit id.
      parents: Parent commit ids
      message: Commit message
    Returns:
      The new commit
    """
    entries = []
    for path, value in files.items():
        if isinstance(value, tuple):
            contents, mode = value
        else:
            contents, mode = value, F
        if mode == GITLINK:
            entries.append((path, contents, mode))
            continue
        blob = Blob.from_string(contents)
        object_store.add_object(blob)
        entries.append((path, blob.id, mode))
    commit = Commit()
    commit.tree = commit_tree(object_store, entries)
    commit.parents = list(parents or [])
    commit.author = commit.committer = b"Test Author <test@nodomain.com>"
    commit.author_time = commit.commit_time = DEFAULT_TIME
    commit.author_timezone = commit.commit_timezone = 0
    commit.message = message
    object_store.add_object(commit)
    return commit


class CountingReader(GitRepositoryReader):
    """Repository reader that records how it is used."""

    def __init__(self, repo, identity: Optional[str] = None) -> None:
        super().__init__(repo, identity)
        self.diffs: list[tuple] = []
        self.reads: list[bytes] = []

    def diff_blobs(self, oldrev, newrev):
        self.diffs.append((oldrev, newrev))
        return super().diff_blobs(oldrev, newrev)

    def read_blob(self, blob_id: bytes) -> bytes:
        self.reads.append(blob_id)
        return super().read_blob(blob_id)


class RecordingPresenceIndex(MemoryPresenceIndex):
    """Presence index that records the queries made against it."""

    def __init__(self) -> None:
        super().__init__()
        self.queries: list[tuple[str, frozenset[str]]] = []

    def exists_batch(self, store, oids):
        self.queries.append((store.owner, frozenset(oids)))
        return super().exists_batch(store, oids)
