from __future__ import annotations
import os
from typing import Sequence

from . import content
from .executor import Runner, run_command
from .models import SIGNATURES, Category, Finding, Outcome
from .utils import free_backup_path

KEYS_BACKUP_SUFFIX = ".bak"


class RemediationPolicy:
    """Decides, per finding, whether to only report or to act.

    Only categories with a narrow remedy are acted upon, and only when
    `auto_remediate` is set. A failed action is reported through the returned
    Outcome and never retried.
    """

    def __init__(
        self,
        auto_remediate: bool = False,
        runner: Runner = run_command,
        signatures: Sequence[str] = SIGNATURES,
    ):
        self.auto_remediate = auto_remediate
        self.runner = runner
        self.signatures = list(signatures)

    def handle(self, finding: Finding) -> Outcome:
        if not (self.auto_remediate and finding.remediable):
            return Outcome(finding)
        handler = {
            Category.PRIVILEGED_USER: self.lock_account,
            Category.ROOT_AUTHORIZED_KEY: self.clear_authorized_keys,
            Category.LD_PRELOAD: self.remove_preload,
            Category.SUSPICIOUS_CONTENT: self.quarantine,
        }[finding.category]
        return handler(finding)

    def lock_account(self, finding: Finding) -> Outcome:
        action = f"lock account {finding.subject}"
        result = self.runner("usermod", "-L", finding.subject)
        if result.ok:
            return Outcome(finding, action, True, f"Locked account: {finding.subject}")
        return Outcome(finding, action, False, f"Failed to lock {finding.subject}: {result.error}")

    def clear_authorized_keys(self, finding: Finding) -> Outcome:
        path = finding.subject
        action = f"back up and clear {path}"
        backup = free_backup_path(path, KEYS_BACKUP_SUFFIX)
        try:
            os.rename(path, backup)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            os.close(fd)
            os.chmod(path, 0o600)
        except OSError as e:
            return Outcome(finding, action, False, f"Failed to clear {path}: {e}")
        return Outcome(finding, action, True, f"Cleared {path} (backup at {backup})")

    def remove_preload(self, finding: Finding) -> Outcome:
        path = finding.subject
        action = f"remove {path}"
        try:
            os.remove(path)
        except OSError as e:
            return Outcome(finding, action, False, f"Failed to remove {path}: {e}")
        return Outcome(finding, action, True, f"Removed {path}")

    def quarantine(self, finding: Finding) -> Outcome:
        path = finding.subject
        action = f"quarantine and clean {path}"
        try:
            backup = content.quarantine_and_clean(path, self.signatures)
        except OSError as e:
            return Outcome(finding, action, False, f"Failed to clean {path}: {e}")
        return Outcome(finding, action, True, f"Cleaned {path} (original at {backup})")
