# hooks.py -- pre-receive hook rejecting pushes with missing LFS objects
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

"""Hook integration for the LFS integrity check."""

from collections.abc import Iterable
from typing import NamedTuple

from dulwich.errors import HookError
from dulwich.hooks import Hook

from .integrity import IntegrityGate
from .log_utils import getLogger
from .scanner import GitRepositoryReader

__all__ = [
    "LFS_OBJECTS_MISSING",
    "LFSIntegrityHook",
    "RefUpdate",
    "parse_ref_updates",
]

logger = getLogger(__name__)

LFS_OBJECTS_MISSING = (
    "LFS objects are missing. Ensure LFS is properly set up or try a manual "
    '"git lfs push --all".'
)


class RefUpdate(NamedTuple):
    """A single ref update, as received by a pre-receive hook."""

    oldrev: bytes
    newrev: bytes
    ref: bytes


def parse_ref_updates(lines: Iterable[bytes]) -> list[RefUpdate]:
    """Parse the ref updates fed to a pre-receive hook on stdin.

    Each line has the form ``<old-value> SP <new-value> SP <ref-name> LF``.

    Raises:
      HookError: if a line is malformed
    """
    updates = []
    for line in lines:
        line = line.rstrip(b"\r\n")
        if not line.strip():
            continue
        fields = line.split(b" ", 2)
        if len(fields) != 3 or not all(fields):
            raise HookError(f"malformed ref update: {line!r}")
        updates.append(RefUpdate(*fields))
    return updates


class LFSIntegrityHook(Hook):
    """pre-receive hook checking that pushed LFS objects were uploaded."""

    def __init__(self, gate: IntegrityGate, repo: GitRepositoryReader) -> None:
        self.gate = gate
        self.repo = repo

    def check(self, updates: Iterable[tuple[bytes, bytes, bytes]]) -> dict[bytes, set[str]]:
        """Check a batch of ref updates.

        Args:
          updates: Iterable over (oldrev, newrev, ref) tuples
        Returns:
          Dictionary mapping the refs that reference missing objects to
          the missing oids
        """
        failed = {}
        for oldrev, newrev, ref in updates:
            missing = self.gate.missing_objects(self.repo, oldrev, newrev)
            if missing:
                logger.info("%s references missing LFS objects", ref.decode("utf-8", "replace"))
                failed[ref] = missing
        return failed

    def execute(self, updates: Iterable[tuple[bytes, bytes, bytes]]) -> None:
        """Execute the hook.

        Args:
          updates: Iterable over (oldrev, newrev, ref) tuples
        Raises:
          HookError: if any update references missing LFS objects
        """
        if self.check(updates):
            raise HookError(LFS_OBJECTS_MISSING)
