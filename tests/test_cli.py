# test_cli.py -- tests for the command line interface
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

"""Tests for lfsgate.cli."""

import io
import os
import shutil
import tempfile
from unittest.mock import patch

from dulwich.lfs import LFSStore
from dulwich.repo import Repo

from lfsgate import cli
from lfsgate.hooks import LFS_OBJECTS_MISSING
from lfsgate.scanner import EMPTY_TREE_ID, ZERO_SHA

from . import TestCase
from .utils import make_commit, make_oid, pointer_data


class LfsgateCliTestCase(TestCase):
    """Base class for CLI tests."""

    def setUp(self) -> None:
        super().setUp()
        self.test_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.test_dir)
        self.repo_path = os.path.join(self.test_dir, "repo")
        os.mkdir(self.repo_path)
        self.repo = Repo.init(self.repo_path)
        self.addCleanup(self.repo.close)
        config = self.repo.get_config()
        config.set((b"lfs",), b"enabled", b"true")
        config.write_to_path()
        self.oid = make_oid("video.mp4 contents")
        self.commit = make_commit(
            self.repo.object_store, {b"video.mp4": pointer_data(self.oid)}
        )

    def _run_cli(self, *args: str, stdin: bytes = b"") -> int:
        with patch("sys.stdin", io.TextIOWrapper(io.BytesIO(stdin))):
            return cli.main(["--repo", self.repo_path, *args])

    def upload(self) -> None:
        LFSStore.from_repo(self.repo, create=True).write_object([b"video.mp4 contents"])


class CheckCommandTest(LfsgateCliTestCase):
    def test_missing(self) -> None:
        with self.assertLogs("lfsgate.cli", level="ERROR") as cm:
            result = self._run_cli("check", EMPTY_TREE_ID.decode(), self.commit.id.decode())
        self.assertEqual(cli.EXIT_MISSING, result)
        self.assertIn(LFS_OBJECTS_MISSING, cm.output[0])
        self.assertIn(self.oid, cm.output[1])

    def test_uploaded(self) -> None:
        self.upload()
        result = self._run_cli("check", EMPTY_TREE_ID.decode(), self.commit.id.decode())
        self.assertEqual(cli.EXIT_OK, result)

    def test_deletion(self) -> None:
        self.assertEqual(cli.EXIT_OK, self._run_cli("check", self.commit.id.decode(), "-"))

    def test_disabled(self) -> None:
        config = self.repo.get_config()
        config.set((b"lfs",), b"enabled", b"false")
        config.write_to_path()
        result = self._run_cli("check", EMPTY_TREE_ID.decode(), self.commit.id.decode())
        self.assertEqual(cli.EXIT_OK, result)

    def test_unknown_revision(self) -> None:
        with self.assertLogs("lfsgate.cli", level="ERROR") as cm:
            result = self._run_cli("check", EMPTY_TREE_ID.decode(), "5" * 40)
        self.assertEqual(cli.EXIT_ERROR, result)
        self.assertIn("LFS integrity check failed", cm.output[0])

    def test_broken_lfs_store(self) -> None:
        with open(os.path.join(self.repo.controldir(), "lfs"), "wb") as f:
            f.write(b"not a directory")
        with self.assertLogs("lfsgate.cli", level="ERROR") as cm:
            result = self._run_cli("check", EMPTY_TREE_ID.decode(), self.commit.id.decode())
        self.assertEqual(cli.EXIT_ERROR, result)
        self.assertIn("LFS integrity check failed", cm.output[0])

    def test_invalid_concurrency(self) -> None:
        config = self.repo.get_config()
        config.set((b"lfs",), b"checkConcurrency", b"many")
        config.write_to_path()
        with self.assertLogs("lfsgate.cli", level="ERROR") as cm:
            result = self._run_cli("check", EMPTY_TREE_ID.decode(), self.commit.id.decode())
        self.assertEqual(cli.EXIT_ERROR, result)
        self.assertIn("invalid LFS configuration", cm.output[0])

    def test_concurrency_without_gevent(self) -> None:
        config = self.repo.get_config()
        config.set((b"lfs",), b"checkConcurrency", b"4")
        config.write_to_path()
        with patch.dict("sys.modules", {"lfsgate.greenthreads": None}):
            with self.assertLogs("lfsgate.cli", level="ERROR") as cm:
                result = self._run_cli(
                    "check", EMPTY_TREE_ID.decode(), self.commit.id.decode()
                )
        self.assertEqual(cli.EXIT_ERROR, result)
        self.assertIn("invalid LFS configuration", cm.output[0])

    def test_unknown_non_ascii_ref(self) -> None:
        with self.assertLogs("lfsgate.cli", level="ERROR") as cm:
            result = self._run_cli("check", EMPTY_TREE_ID.decode(), "refs/heads/café")
        self.assertEqual(cli.EXIT_ERROR, result)
        self.assertIn("LFS integrity check failed", cm.output[0])

    def test_not_a_repository(self) -> None:
        with self.assertLogs("lfsgate.cli", level="ERROR"):
            result = cli.main(
                ["--repo", self.test_dir, "check", EMPTY_TREE_ID.decode(), "5" * 40]
            )
        self.assertEqual(cli.EXIT_ERROR, result)


class PreReceiveCommandTest(LfsgateCliTestCase):
    def test_rejects(self) -> None:
        stdin = ZERO_SHA + b" " + self.commit.id + b" refs/heads/main\n"
        with self.assertLogs("lfsgate.cli", level="ERROR") as cm:
            result = self._run_cli("pre-receive", stdin=stdin)
        self.assertEqual(cli.EXIT_MISSING, result)
        self.assertIn(LFS_OBJECTS_MISSING, cm.output[0])

    def test_accepts(self) -> None:
        self.upload()
        stdin = ZERO_SHA + b" " + self.commit.id + b" refs/heads/main\n"
        self.assertEqual(cli.EXIT_OK, self._run_cli("pre-receive", stdin=stdin))

    def test_accepts_deletion(self) -> None:
        stdin = self.commit.id + b" " + ZERO_SHA + b" refs/heads/main\n"
        self.assertEqual(cli.EXIT_OK, self._run_cli("pre-receive", stdin=stdin))

    def test_malformed_input(self) -> None:
        with self.assertLogs("lfsgate.cli", level="ERROR"):
            result = self._run_cli("pre-receive", stdin=b"garbage\n")
        self.assertEqual(cli.EXIT_ERROR, result)


class MainTest(LfsgateCliTestCase):
    def test_no_command(self) -> None:
        with patch("sys.stdout", io.StringIO()) as stdout:
            self.assertEqual(1, cli.main([]))
        self.assertIn("usage: lfsgate", stdout.getvalue())

    def test_unknown_command(self) -> None:
        with self.assertLogs("lfsgate.cli", level="CRITICAL"):
            self.assertEqual(1, self._run_cli("frobnicate"))
