# scanner.py -- Find LFS pointers introduced by a revision range
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

"""Scanning of revision ranges for Git LFS pointers.

Only the trees at the two ends of a range are compared; history in between
is never walked.
"""

import os
import stat
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from dulwich.diff_tree import CHANGE_ADD, CHANGE_MODIFY, tree_changes
from dulwich.errors import NotBlobError, NotCommitError
from dulwich.object_store import peel_sha
from dulwich.objects import Blob, Commit, Tree

from .log_utils import getLogger
from .pointer import LFSPointer, parse_pointer

if TYPE_CHECKING:
    from dulwich.config import Config
    from dulwich.repo import BaseRepo

logger = getLogger(__name__)

# Trees with no entries, for SHA-1 and SHA-256 repositories.
EMPTY_TREE_ID = b"4b825dc642cb6eb9a060e54bf8d69288fbee4904"
EMPTY_TREE_IDS = frozenset(
    [
        EMPTY_TREE_ID,
        b"6ef19b41225c5369f1c104d45d8d85efa9b057b53b14b4b9b939dd74decc5321",
    ]
)

# Used by git in ref updates for "no object".
ZERO_SHA = b"0" * 40

Revision = Union[bytes, str]


def _normalize_rev(rev: Optional[Revision]) -> Optional[bytes]:
    if rev is None:
        return None
    if isinstance(rev, str):
        rev = os.fsencode(rev)
    if len(rev) in (40, 64) and not rev.strip(b"0"):
        return None
    return rev


@dataclass(frozen=True)
class RevisionRange:
    """The pair of revisions a push moves a ref between.

    An ``oldrev`` of None means the ref is new and everything in ``newrev``
    counts as added. A ``newrev`` of None means the ref is being deleted.
    """

    oldrev: Optional[bytes]
    newrev: Optional[bytes]

    @classmethod
    def from_revs(
        cls, oldrev: Optional[Revision], newrev: Optional[Revision]
    ) -> "RevisionRange":
        """Create a range, folding the empty tree and zero ids into None."""
        old = _normalize_rev(oldrev)
        if old in EMPTY_TREE_IDS:
            old = None
        return cls(old, _normalize_rev(newrev))

    @property
    def is_deletion(self) -> bool:
        return self.newrev is None

    @property
    def is_creation(self) -> bool:
        return self.oldrev is None


class GitRepositoryReader:
    """Read access to a dulwich repository, as needed for pointer scanning."""

    def __init__(self, repo: "BaseRepo", identity: Optional[str] = None) -> None:
        """Initialize GitRepositoryReader.

        Args:
          repo: Repository to read from
          identity: Name of the repository in fork networks and presence
            indexes. Defaults to the repository's control directory.
        """
        self.repo = repo
        if identity is None:
            if not hasattr(repo, "controldir"):
                raise ValueError("identity is required for repositories without a controldir")
            identity = repo.controldir()
        self.identity = identity

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identity!r})"

    def get_config(self) -> "Config":
        """Return the configuration of the wrapped repository."""
        return self.repo.get_config()

    def _tree_id(self, rev: Optional[bytes]) -> Optional[bytes]:
        if rev is None:
            return None
        # Accept ref names as well as object ids.
        _, obj = peel_sha(self.repo.object_store, self.repo[rev].id)
        if isinstance(obj, Commit):
            return obj.tree
        if isinstance(obj, Tree):
            return obj.id
        raise NotCommitError(obj.id)

    def diff_blobs(
        self, oldrev: Optional[Revision], newrev: Optional[Revision]
    ) -> Iterator[tuple[bytes, bytes]]:
        """Iterate over the regular files added or modified in a range.

        Args:
          oldrev: Old revision, the empty tree id or None
          newrev: New revision
        Returns:
          Iterator over (path, blob id) tuples
        """
        revs = RevisionRange.from_revs(oldrev, newrev)
        if revs.is_deletion:
            return
        old_tree = self._tree_id(revs.oldrev)
        new_tree = self._tree_id(revs.newrev)
        for change in tree_changes(self.repo.object_store, old_tree, new_tree):
            if change.type not in (CHANGE_ADD, CHANGE_MODIFY):
                continue
            entry = change.new
            # Symlinks and submodules can't be pointers.
            if entry is None or entry.mode is None or not stat.S_ISREG(entry.mode):
                continue
            yield entry.path, entry.sha

    def read_blob(self, blob_id: bytes) -> bytes:
        """Read the contents of a blob.

        The whole blob is loaded into memory, even when it is far larger than
        any pointer; dulwich object stores have no cheaper way to find the
        size of a blob.

        Raises:
          KeyError: if the blob does not exist
          NotBlobError: if blob_id refers to something other than a blob
        """
        type_num, data = self.repo.object_store.get_raw(blob_id)
        if type_num != Blob.type_num:
            raise NotBlobError(blob_id)
        return data


class PointerScanner:
    """Find the LFS pointers a revision range adds or changes."""

    def scan(
        self, repo: GitRepositoryReader, oldrev: Optional[Revision], newrev: Optional[Revision]
    ) -> Iterator[LFSPointer]:
        """Scan a revision range for LFS pointers.

        Pointers are yielded once per path they appear at, so the same oid
        may be yielded more than once. The returned iterator is single use.

        Args:
          repo: Repository to scan
          oldrev: Old revision, the empty tree id or None
          newrev: New revision, or None for a deletion
        Returns:
          Iterator over LFSPointer objects
        """
        revs = RevisionRange.from_revs(oldrev, newrev)
        if revs.is_deletion:
            return
        seen: dict[bytes, Optional[LFSPointer]] = {}
        for path, blob_id in repo.diff_blobs(revs.oldrev, revs.newrev):
            try:
                pointer = seen[blob_id]
            except KeyError:
                pointer = seen[blob_id] = parse_pointer(repo.read_blob(blob_id))
            if pointer is None:
                continue
            logger.debug("LFS pointer at %r: %s", path, pointer.oid)
            yield pointer
