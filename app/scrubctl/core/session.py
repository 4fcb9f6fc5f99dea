"""Cleanup session wiring.

A ``CleanupSession`` owns every engine component for one run: the
protection registry, whitelist, validator, statistics, removal executor,
system probes and orphan detector. Components are built once from the
frozen settings, so dry-run mode and the protected table cannot change
while a session is in progress.
"""

import logging
import os
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from scrubctl.core.paths import get_config_dir, get_whitelist_path
from scrubctl.core.platform import CasePolicy, PlatformProfile, current_profile
from scrubctl.core.settings import EngineSettings, load_settings
from scrubctl.orphans.detector import OrphanDetector
from scrubctl.orphans.models import OrphanCandidate
from scrubctl.removal.executor import RemovalExecutor, RemovalOptions
from scrubctl.removal.models import BatchResult
from scrubctl.removal.statistics import SessionStatistics, StatisticsSnapshot
from scrubctl.safety.protected import ProtectionRegistry, ProtectionRule
from scrubctl.safety.resolver import normalize
from scrubctl.safety.validator import PathValidator
from scrubctl.safety.whitelist import WhitelistMatcher
from scrubctl.utils.probes import SystemProbes

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CacheCleanupReport:
    """Result of a bulk cache cleanup.

    Attributes:
        results: Cache directory to the BatchResult of its contents.
        skipped: Cache directory to the reason it was not touched.
    """

    results: dict[str, BatchResult] = field(default_factory=dict)
    skipped: dict[str, str] = field(default_factory=dict)

    @property
    def failed_count(self) -> int:
        """Failed items across all cleaned directories."""
        return sum(result.failed_count for result in self.results.values())


class CleanupSession:
    """One cleanup run with its own statistics.

    Args:
        settings: Engine settings. If None, loaded from the settings file
            and environment.
        profile: Platform profile. If None, the running platform's.
        home: Home directory used to expand ``~`` entries.
        probes: System probes. If None, probes for the profile's platform.
        clock: Time source returning epoch seconds.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        profile: PlatformProfile | None = None,
        home: Path | None = None,
        *,
        probes: SystemProbes | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or load_settings()
        self.profile = profile or current_profile()
        self.home = home or Path.home()
        self._clock = clock

        self.registry = self._build_registry()
        self.whitelist = WhitelistMatcher(
            self.registry,
            self.profile.builtin_whitelist,
            get_whitelist_path(),
        )
        self.validator = PathValidator(self.registry, self.whitelist)
        self.statistics = SessionStatistics()
        self.executor = RemovalExecutor(
            self.validator,
            self.statistics,
            dry_run=self.settings.dry_run,
            max_workers=self.settings.max_workers,
            empty_dir_max_passes=self.settings.empty_dir_max_passes,
            clock=clock,
        )
        self.probes = probes or SystemProbes(self.profile.name)
        self.detector = OrphanDetector(
            self.validator,
            self.probes,
            self.profile,
            home=self.home,
            retention_days=self.settings.retention_days,
            excluded_prefixes=self.settings.excluded_app_prefixes,
            clock=clock,
        )
        logger.debug(
            "Session ready (platform=%s, dry_run=%s, workers=%d)",
            self.profile.name,
            self.settings.dry_run,
            self.settings.max_workers,
        )

    @property
    def dry_run(self) -> bool:
        """Check if the session simulates removals."""
        return self.executor.dry_run

    def expand_home(self, path: str) -> str:
        """Expand a leading ``~`` against the session's home directory."""
        if path == "~" or path.startswith("~/"):
            return str(self.home) + path[1:]
        return path

    def preview(self) -> RemovalExecutor:
        """Dry-run executor sharing this session's validator.

        Its statistics are private, so previews never count towards the
        session totals.
        """
        return RemovalExecutor(
            self.validator,
            SessionStatistics(),
            dry_run=True,
            max_workers=self.settings.max_workers,
            empty_dir_max_passes=self.settings.empty_dir_max_passes,
            clock=self._clock,
        )

    def default_cache_dirs(self) -> list[str]:
        """Cache directories of the platform profile, expanded."""
        return [self.expand_home(d) for d in self.profile.cache_dirs]

    def clean_cache_dirs(
        self,
        dirs: Iterable[str] | None = None,
        options: RemovalOptions | None = None,
    ) -> CacheCleanupReport:
        """Remove the contents of cache directories as parallel batches.

        Nothing is removed while a backup is running (or its status is
        unknown) when ``respect_backups`` is set. Directories on network
        volumes, or on volumes whose type cannot be determined, are left
        alone.

        Args:
            dirs: Cache directories. Defaults to ``default_cache_dirs()``.
            options: Removal options for every batch.

        Returns:
            CacheCleanupReport with per-directory results and skip reasons.
        """
        if dirs is None:
            targets = self.default_cache_dirs()
        else:
            targets = [self.expand_home(d) for d in dirs]
        skipped: dict[str, str] = {}

        if self.settings.respect_backups:
            backup = self.probes.backup_in_progress()
            if backup is not False:
                reason = "backup in progress" if backup else "backup status unknown"
                logger.warning("Skipping cache cleanup: %s", reason)
                return CacheCleanupReport(skipped={d: reason for d in targets})

        batches: dict[str, list[str]] = {}
        for directory in targets:
            if not os.path.isdir(directory) or os.path.islink(directory):
                skipped[directory] = "not a directory"
                continue

            network = self.probes.is_network_volume(directory)
            if network is not False:
                skipped[directory] = "network volume" if network else "unknown volume type"
                logger.warning("Skipping %s: %s", directory, skipped[directory])
                continue

            try:
                names = sorted(os.listdir(directory))
            except OSError as e:
                skipped[directory] = f"cannot list: {e}"
                logger.warning("Skipping %s: %s", directory, e)
                continue
            batches[directory] = [os.path.join(directory, name) for name in names]

        results = self.executor.remove_batches(batches, options)
        return CacheCleanupReport(results=results, skipped=skipped)

    def remove_orphans(self, candidates: Iterable[OrphanCandidate]) -> dict[str, BatchResult]:
        """Remove orphan candidates, one batch per application.

        Candidates are validated again by the executor before removal.
        """
        batches: dict[str, list[str]] = {}
        for candidate in candidates:
            batches.setdefault(candidate.app_id, []).append(candidate.path)
        return self.executor.remove_batches(batches)

    def snapshot(self) -> StatisticsSnapshot:
        """Current session statistics."""
        return self.statistics.snapshot()

    def reset(self) -> None:
        """Zero the session statistics."""
        self.statistics.reset()

    def _build_registry(self) -> ProtectionRegistry:
        """Platform registry plus the active configuration directory."""
        case_policy: CasePolicy | None = None
        if self.settings.case_insensitive is not None:
            case_policy = (
                CasePolicy.INSENSITIVE if self.settings.case_insensitive else CasePolicy.SENSITIVE
            )

        base = ProtectionRegistry.from_profile(
            self.profile, home=self.home, case_policy=case_policy
        )
        config_rule = ProtectionRule(normalize(os.path.abspath(get_config_dir())))
        if config_rule in base.rules:
            return base
        return ProtectionRegistry([*base.rules, config_rule], case_policy=base.case_policy)
