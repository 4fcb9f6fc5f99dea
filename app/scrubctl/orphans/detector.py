"""Detection of application data left behind by uninstalled applications.

An application's data is reported as orphaned only when every heuristic
agrees:

1. the identifier is a valid bundle id and not an excluded vendor prefix
2. the application is absent from all canonical install locations
3. no user service or agent with that identifier is running
4. every data path is older than the retention threshold
5. each data path passes the removal validator

Probes that cannot answer count as "application may still be in use".
"""

import glob
import logging
import os
import plistlib
import time
from collections.abc import Callable, Iterable, Iterator
from datetime import UTC, datetime
from pathlib import Path

from scrubctl.core.platform import InstallLayout, PlatformProfile
from scrubctl.orphans.models import OrphanCandidate
from scrubctl.removal.executor import SECONDS_PER_DAY, survey
from scrubctl.safety.errors import InvalidBundleIdError, SymlinkBoundaryError
from scrubctl.safety.validator import PathValidator
from scrubctl.safety.whitelist import bundle_pattern, is_valid_bundle_id
from scrubctl.utils.probes import SystemProbes

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 60

# Suffixes stripped from data root entries to recover the bundle id
_DATA_SUFFIXES: tuple[str, ...] = (".savedState", ".plist")

# Discovered names need a vendor and a product segment at least; two-segment
# names in data roots are mostly plain files ("user-dirs.dirs")
_MIN_DISCOVERED_SEGMENTS = 3


class OrphanDetector:
    """Finds data of applications that are no longer installed.

    Installed-application lookups are cached for the duration of one
    ``scan()``.

    Args:
        validator: Safety gate every candidate must pass.
        probes: System probes used for the running-service check.
        profile: Platform profile (install locations, data templates).
        home: Home directory used to expand ``~``. Defaults to the user's home.
        retention_days: Minimum age of every data path in days.
        excluded_prefixes: Additional identifier prefixes never reported.
        clock: Time source returning epoch seconds.
    """

    def __init__(
        self,
        validator: PathValidator,
        probes: SystemProbes,
        profile: PlatformProfile,
        *,
        home: Path | None = None,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        excluded_prefixes: Iterable[str] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._validator = validator
        self._probes = probes
        self._profile = profile
        self._home = str(home or Path.home())
        self._retention_days = retention_days
        self._excluded = tuple(
            prefix.casefold() for prefix in (*profile.excluded_app_prefixes, *excluded_prefixes)
        )
        self._clock = clock
        # Set only while scan() runs; direct lookups always read fresh
        self._installed_cache: dict[str, frozenset[str]] | None = None

    @property
    def install_locations(self) -> tuple[str, ...]:
        """Install locations inspected for every identifier."""
        return tuple(self._expand_home(location) for location in self._profile.install_locations)

    def is_excluded(self, app_id: str) -> bool:
        """Check if an identifier starts with an excluded prefix."""
        folded = app_id.casefold()
        return any(folded.startswith(prefix) for prefix in self._excluded)

    def is_installed(self, app_id: str) -> bool:
        """Check if an application is present in any install location."""
        folded = app_id.casefold()
        return any(folded in self._installed_ids(location) for location in self.install_locations)

    def find_orphans(self, app_id: str) -> list[OrphanCandidate]:
        """Find orphaned data for one application.

        Args:
            app_id: Application bundle identifier.

        Returns:
            One candidate per data path, or an empty list if any
            heuristic says the application may still be in use.
        """
        if not is_valid_bundle_id(app_id):
            logger.debug("Skipping malformed identifier: %r", app_id)
            return []
        if self.is_excluded(app_id):
            logger.debug("Skipping excluded identifier: %s", app_id)
            return []
        if self.is_installed(app_id):
            return []

        service = self._probes.service_active(app_id)
        if service is not False:
            logger.debug("Service check for %s returned %s, skipping", app_id, service)
            return []

        data = self._data_paths(app_id)
        if not data:
            return []

        threshold = self._clock() - self._retention_days * SECONDS_PER_DAY
        if any(mtime > threshold for _, mtime in data):
            logger.debug("Recently used data for %s, skipping", app_id)
            return []

        locations = self.install_locations
        candidates: list[OrphanCandidate] = []
        for path, mtime in data:
            validation = self._validator.validate(path)
            if not validation.is_safe:
                logger.debug("Dropping candidate %s: %s", path, validation.reason)
                continue
            candidates.append(
                OrphanCandidate(
                    app_id=app_id,
                    path=path,
                    last_modified=datetime.fromtimestamp(mtime, tz=UTC),
                    checked_locations=locations,
                    size_bytes=self._get_size(path),
                )
            )
        return candidates

    def discover_app_ids(self) -> list[str]:
        """List bundle identifiers found in the profile's data roots."""
        found: set[str] = set()
        for root in self._profile.app_data_roots:
            directory = self._expand_home(root)
            try:
                names = os.listdir(directory)
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("Cannot list %s: %s", directory, e)
                continue

            for name in names:
                app_id = _strip_data_suffix(name)
                if (
                    is_valid_bundle_id(app_id)
                    and app_id.count(".") + 1 >= _MIN_DISCOVERED_SEGMENTS
                ):
                    found.add(app_id)
        return sorted(found)

    def scan(self, app_ids: Iterable[str] | None = None) -> Iterator[OrphanCandidate]:
        """Scan identifiers and yield orphaned data.

        Args:
            app_ids: Identifiers to check. Defaults to every identifier
                discovered in the data roots.

        Yields:
            OrphanCandidate for each orphaned data path.
        """
        self._installed_cache = {}
        try:
            ids = list(app_ids) if app_ids is not None else self.discover_app_ids()
            for app_id in ids:
                yield from self.find_orphans(app_id)
        finally:
            self._installed_cache = None

    # === Private helpers ===

    def _expand_home(self, path: str) -> str:
        if path == "~":
            return self._home
        if path.startswith("~/"):
            return self._home + path[1:]
        return path

    def _data_paths(self, app_id: str) -> list[tuple[str, float]]:
        """Existing data paths of an application with their mtimes."""
        paths: dict[str, float] = {}
        for template in self._profile.app_data_templates:
            try:
                pattern = bundle_pattern(template, app_id)
            except InvalidBundleIdError:
                return []

            # Home may contain glob metacharacters, the template part may not
            if pattern.startswith("~/"):
                pattern = glob.escape(self._home) + pattern[1:]

            for match in sorted(glob.glob(pattern)):
                try:
                    paths[match] = os.lstat(match).st_mtime
                except OSError as e:
                    logger.debug("Cannot stat %s: %s", match, e)
        return list(paths.items())

    def _installed_ids(self, location: str) -> frozenset[str]:
        """Case-folded identifiers of applications in one install location."""
        cache = self._installed_cache
        if cache is not None and location in cache:
            return cache[location]

        if self._profile.install_layout == InstallLayout.APP_BUNDLES:
            ids = _bundle_ids(location)
        else:
            ids = _desktop_entry_ids(location)
        if cache is not None:
            cache[location] = ids
        return ids

    @staticmethod
    def _get_size(path: str) -> int | None:
        try:
            return survey(path)
        except (SymlinkBoundaryError, OSError) as e:
            logger.debug("Cannot measure %s: %s", path, e)
            return None


def _strip_data_suffix(name: str) -> str:
    for suffix in _DATA_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def _desktop_entry_ids(location: str) -> frozenset[str]:
    """Identifiers of ``<app-id>.desktop`` entries in a directory."""
    try:
        names = os.listdir(location)
    except OSError:
        return frozenset()
    return frozenset(
        name.removesuffix(".desktop").casefold() for name in names if name.endswith(".desktop")
    )


def _bundle_ids(location: str) -> frozenset[str]:
    """``CFBundleIdentifier`` values of the ``*.app`` bundles in a directory."""
    try:
        names = os.listdir(location)
    except OSError:
        return frozenset()

    ids: set[str] = set()
    for name in names:
        if not name.endswith(".app"):
            continue
        info = os.path.join(location, name, "Contents", "Info.plist")
        try:
            with open(info, "rb") as f:
                plist = plistlib.load(f)
        except (OSError, plistlib.InvalidFileException, ValueError) as e:
            logger.debug("Cannot read %s: %s", info, e)
            continue
        bundle_id = plist.get("CFBundleIdentifier") if isinstance(plist, dict) else None
        if isinstance(bundle_id, str):
            ids.add(bundle_id.casefold())
    return frozenset(ids)
