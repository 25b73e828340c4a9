# tests/conftest.py
import os

import pytest

from tests.utils.fakes import FakeProbe, RecordingRunner, write_proc


@pytest.fixture
def proc_root(tmp_path):
    root = tmp_path / "proc"
    root.mkdir()
    write_proc(root, 1, b"/sbin/init\x00splash\x00")
    write_proc(root, 42, b"/usr/sbin/sshd\x00-D\x00")
    (root / "self").mkdir()
    (root / "net").mkdir()
    return root


@pytest.fixture
def fake_root(tmp_path):
    """An empty host tree with the directories the scanners look at."""
    root = tmp_path / "host"
    for d in ("etc/cron.d", "etc/cron.daily", "etc/systemd/system", "root/.ssh", "var/spool/cron"):
        os.makedirs(root / d, exist_ok=True)
    (root / "etc" / "passwd").write_text(
        "root:x:0:0:root:/root:/bin/bash\n"
        "daemon:x:1:1:daemon:/usr/sbin:/usr/sbin/nologin\n"
        "alice:x:1000:1000::/home/alice:/bin/bash\n"
    )
    return root


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def runner():
    return RecordingRunner()
