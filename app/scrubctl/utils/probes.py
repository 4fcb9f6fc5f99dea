"""Read-only system probes used by detection heuristics.

Each probe answers a yes/no question about the system (is a service
running, is a backup in progress, what filesystem backs a path) by
calling an external tool through ``run_bounded``. Every probe returns
None when the answer is unknown: the tool is missing, failed in an
unexpected way or ran past its deadline. Callers treat None as "do not
proceed".
"""

import logging
import re
import sys

from scrubctl.utils.shell import BoundedResult, QueryStatus, command_exists, run_bounded

logger = logging.getLogger(__name__)

# Deadlines in seconds
SERVICE_DEADLINE = 1.0
VOLUME_DEADLINE = 2.0
# Backup tools are known to stall while a backup is being prepared
BACKUP_DEADLINE = 15.0

NETWORK_FILESYSTEMS: frozenset[str] = frozenset(
    {
        "nfs",
        "nfs4",
        "cifs",
        "smb",
        "smbfs",
        "smb3",
        "afpfs",
        "webdav",
        "davfs",
        "fuse.sshfs",
        "sshfs",
        "9p",
        "ceph",
        "glusterfs",
    }
)

_LINUX_BACKUP_PROCESSES = "^(timeshift|deja-dup|duplicity|borg|restic|rsnapshot)$"


class SystemProbes:
    """Platform-specific detection queries behind a single interface.

    Args:
        platform: Platform name ("linux" or "darwin"). Defaults to the
            running platform.
    """

    def __init__(self, platform: str | None = None) -> None:
        self._platform = platform or ("darwin" if sys.platform == "darwin" else "linux")

    @property
    def platform(self) -> str:
        """Platform the probes target."""
        return self._platform

    def service_active(self, name: str) -> bool | None:
        """Check if a user service or agent with this name is running.

        Args:
            name: Service unit name or launchd label.

        Returns:
            True/False, or None if unknown.
        """
        if self._platform == "darwin":
            args = ["launchctl", "list", name]
        else:
            args = ["systemctl", "--user", "is-active", "--quiet", name]

        result = self._query(args, SERVICE_DEADLINE)
        if result is None:
            return None
        if result.status == QueryStatus.OK:
            return True
        if "Failed to connect" in result.stderr:
            # No user manager to ask (e.g., outside a login session)
            return None
        # Both tools exit non-zero when the unit/label is not running
        return False

    def backup_in_progress(self) -> bool | None:
        """Check if a system backup is currently running.

        Returns:
            True/False, or None if unknown.
        """
        if self._platform == "darwin":
            result = self._query(["tmutil", "status"], BACKUP_DEADLINE)
            if result is None or not result.success:
                return None
            match = re.search(r"\bRunning\s*=\s*(\d+)", result.stdout)
            if match is None:
                return None
            return match.group(1) != "0"

        result = self._query(["pgrep", "-x", _LINUX_BACKUP_PROCESSES], BACKUP_DEADLINE)
        if result is None:
            return None
        if result.status == QueryStatus.OK:
            return True
        # pgrep: 1 = no process matched, anything else is an error
        if result.returncode == 1:
            return False
        return None

    def volume_type(self, path: str) -> str | None:
        """Get the filesystem type backing a path.

        Args:
            path: Existing path on the volume.

        Returns:
            Lower-case filesystem type (e.g., "ext4", "apfs"), or None if unknown.
        """
        if self._platform == "darwin":
            result = self._query(["diskutil", "info", path], VOLUME_DEADLINE)
            if result is None or not result.success:
                return None
            for line in result.stdout.splitlines():
                key, _, value = line.partition(":")
                if key.strip() in ("Type (Bundle)", "File System Personality"):
                    return value.strip().lower() or None
            return None

        result = self._query(["findmnt", "-n", "-o", "FSTYPE", "--target", path], VOLUME_DEADLINE)
        if result is None or not result.success:
            return None
        fstype = result.stdout.strip().lower()
        return fstype or None

    def is_network_volume(self, path: str) -> bool | None:
        """Check if a path lives on a network filesystem.

        Returns:
            True/False, or None if the volume type is unknown.
        """
        fstype = self.volume_type(path)
        if fstype is None:
            return None
        return fstype in NETWORK_FILESYSTEMS

    def _query(self, args: list[str], deadline: float) -> BoundedResult | None:
        """Run a query, returning None when no answer is available."""
        if not command_exists(args[0]):
            logger.debug("Probe tool not available: %s", args[0])
            return None

        result = run_bounded(args, deadline)
        if result.unknown:
            logger.info("Probe %s gave no answer (%s)", args[0], result.status.value)
            return None
        return result
