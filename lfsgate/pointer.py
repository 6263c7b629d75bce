# pointer.py -- Git LFS pointer files
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

"""Parsing of Git LFS pointer files.

A pointer file is the small text blob that Git LFS commits in place of a
large file. It looks like::

    version https://git-lfs.github.com/spec/v1
    oid sha256:4d7a214614ab2935c943f9e0ff69d22eadbb8f32b1258daaa5e2ca24d17e2393
    size 12345

Parsing here is strict: anything that only resembles a pointer is treated as
ordinary file content and yields ``None``.
"""

import re
from dataclasses import dataclass
from typing import Optional

from dulwich import lfs as dulwich_lfs

__all__ = [
    "LFS_SPEC_URL",
    "MAX_POINTER_SIZE",
    "LFSPointer",
    "is_pointer",
    "parse_pointer",
]

LFS_SPEC_URL = "https://git-lfs.github.com/spec/v1"

# Pre-release clients wrote this version string; git-lfs still accepts it.
LEGACY_SPEC_URLS = ("https://hawser.github.com/spec/v1",)

# Git LFS never writes pointers of 1024 bytes or more.
MAX_POINTER_SIZE = 1024

_KEY_RE = re.compile(r"^[a-z0-9.-]+$")
_OID_RE = re.compile(r"^sha256:([0-9a-f]{64})$")
_SIZE_RE = re.compile(r"^[0-9]+$")


@dataclass(frozen=True)
class LFSPointer:
    """A reference to a large object stored outside of git.

    Unlike :class:`dulwich.lfs.LFSPointer`, instances compare by value and are
    hashable, so pointers found in a push can be deduplicated and used in
    sets. Use :meth:`to_dulwich` to pass one to :mod:`dulwich.lfs`.
    """

    oid: str
    size: int

    def to_dulwich(self) -> dulwich_lfs.LFSPointer:
        """Return the equivalent dulwich pointer."""
        return dulwich_lfs.LFSPointer(self.oid, self.size)

    def to_bytes(self) -> bytes:
        """Render the canonical pointer file for this object."""
        return (
            f"version {LFS_SPEC_URL}\noid sha256:{self.oid}\nsize {self.size}\n"
        ).encode("ascii")


def _split_lines(text: str) -> Optional[list[tuple[str, str]]]:
    if not text.endswith("\n"):
        return None
    entries = []
    for line in text[:-1].split("\n"):
        key, sep, value = line.partition(" ")
        if not sep or not value or not _KEY_RE.match(key):
            return None
        entries.append((key, value))
    return entries


def parse_pointer(data: bytes) -> Optional[LFSPointer]:
    """Parse a Git LFS pointer.

    Args:
      data: Blob contents
    Returns:
      The parsed pointer, or None if data is not a valid pointer file
    """
    if not data or len(data) >= MAX_POINTER_SIZE:
        return None
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return None

    entries = _split_lines(text)
    if not entries:
        return None

    key, version = entries[0]
    if key != "version":
        return None
    if version != LFS_SPEC_URL and version not in LEGACY_SPEC_URLS:
        return None

    # Remaining keys are unique and sorted.
    keys = [key for key, value in entries[1:]]
    if keys != sorted(set(keys)) or "version" in keys:
        return None

    values = dict(entries[1:])
    try:
        oid_value = values["oid"]
        size_value = values["size"]
    except KeyError:
        return None

    m = _OID_RE.match(oid_value)
    if m is None or not _SIZE_RE.match(size_value):
        return None
    return LFSPointer(m.group(1), int(size_value))


def is_pointer(data: bytes) -> bool:
    """Check whether data is a Git LFS pointer file."""
    return parse_pointer(data) is not None
