"""Location and priority classification for scanned files.

``classify`` is a pure function: every environmental fact it needs
(platform roots, the volume holding the file, the current time) is passed
in. ``PlatformRoots.detect`` and ``VolumeTable`` gather those facts once
per scan at the boundary, and ``Classifier`` binds them together.
"""

from __future__ import annotations

import logging
import os
import re
import string
import sys
import tempfile
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from pathlib import Path, PurePath

from dupectl.models.descriptor import Location, Priority

logger = logging.getLogger(__name__)

# Priority scoring thresholds
RECENT_WINDOW = timedelta(days=30)
STALE_ACCESS_WINDOW = timedelta(days=365)
LARGE_FILE_BYTES = 100 * 1024 * 1024
SHALLOW_DEPTH = 3
DEEP_DEPTH = 8

# Path components that mark temporary areas (compared lower-case)
TEMP_MARKERS: frozenset[str] = frozenset({"tmp", "temp", ".tmp", ".cache"})

# Folder names used by cloud synchronisation clients (compared lower-case)
CLOUD_SYNC_MARKERS: frozenset[str] = frozenset(
    {
        "dropbox",
        "onedrive",
        "google drive",
        "googledrive",
        "icloud drive",
        "icloud drive (archive)",
        "nextcloud",
        "owncloud",
        "pcloud drive",
        "mega",
        "megasync",
    }
)
# OneDrive for Business folders are named "OneDrive - <Organisation>"
CLOUD_SYNC_PREFIXES: tuple[str, ...] = ("onedrive - ",)

NETWORK_FSTYPES: frozenset[str] = frozenset(
    {
        "nfs",
        "nfs4",
        "cifs",
        "smbfs",
        "smb3",
        "afs",
        "9p",
        "fuse.sshfs",
        "fuse.rclone",
        "fuse.gvfsd-fuse",
        "davfs",
        "ncpfs",
    }
)

REMOVABLE_MOUNT_PARENTS: tuple[str, ...] = ("/media", "/run/media", "/Volumes")


class VolumeKind(str, Enum):
    """Reported type of a mounted volume."""

    FIXED = "fixed"
    REMOVABLE = "removable"
    NETWORK = "network"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class VolumeInfo:
    """A mounted volume.

    Attributes:
        root: Mount point or drive root (e.g., "/media/usb" or "D:\\").
        kind: Reported volume type.
        fstype: Filesystem type as reported by the OS, if known.
    """

    root: str
    kind: VolumeKind
    fstype: str = ""


@dataclass(frozen=True, slots=True)
class Classification:
    """Derived classification of one file."""

    location: Location
    priority: Priority


@dataclass(frozen=True, slots=True)
class PlatformRoots:
    """Well-known directory roots of the running platform.

    Attributes:
        boot_root: Root of the boot volume ("/" or e.g. "C:\\").
        user_profile: Home directory of the current user, if known.
        temp_dirs: Temporary directory roots.
        program_files: Application installation roots.
        system_dirs: Operating system directory roots.
        cloud_sync_dirs: Known cloud synchronisation folders.
    """

    boot_root: str
    user_profile: str | None = None
    temp_dirs: tuple[str, ...] = ()
    program_files: tuple[str, ...] = ()
    system_dirs: tuple[str, ...] = ()
    cloud_sync_dirs: tuple[str, ...] = ()

    @classmethod
    def detect(cls) -> PlatformRoots:
        """Collect the roots of the running platform from the environment."""
        home = str(Path.home())
        temp_dirs = tuple(dict.fromkeys([tempfile.gettempdir(), "/tmp", "/var/tmp"]))

        if sys.platform == "win32":
            system_drive = os.environ.get("SystemDrive", "C:")
            system_root = os.environ.get("SystemRoot", f"{system_drive}\\Windows")
            win_program_files = tuple(
                value
                for key in ("ProgramFiles", "ProgramFiles(x86)", "ProgramW6432", "ProgramData")
                if (value := os.environ.get(key))
            )
            cloud = tuple(
                value
                for key in ("OneDrive", "OneDriveConsumer", "OneDriveCommercial")
                if (value := os.environ.get(key))
            )
            return cls(
                boot_root=f"{system_drive}\\",
                user_profile=os.environ.get("USERPROFILE", home),
                temp_dirs=(tempfile.gettempdir(),),
                program_files=win_program_files,
                system_dirs=(system_root,),
                cloud_sync_dirs=cloud,
            )

        program_files: tuple[str, ...] = (
            "/opt",
            "/usr/lib",
            "/usr/local/lib",
            "/usr/share",
            "/snap",
            "/var/lib/flatpak",
        )
        system_dirs: tuple[str, ...] = (
            "/bin",
            "/sbin",
            "/boot",
            "/dev",
            "/etc",
            "/lib",
            "/lib64",
            "/proc",
            "/sys",
            "/usr/bin",
            "/usr/sbin",
        )
        if sys.platform == "darwin":
            program_files = (*program_files, "/Applications")
            system_dirs = (*system_dirs, "/System", "/Library")

        cloud = tuple(
            str(Path(home) / name)
            for name in ("Dropbox", "OneDrive", "Google Drive", "Nextcloud", "ownCloud")
        )
        return cls(
            boot_root="/",
            user_profile=home,
            temp_dirs=temp_dirs,
            program_files=program_files,
            system_dirs=system_dirs,
            cloud_sync_dirs=cloud,
        )


def path_depth(path: str) -> int:
    """Number of components below the filesystem root, file name included."""
    return max(len(PurePath(path).parts) - 1, 0)


def _is_under(path: PurePath, root: str) -> bool:
    return bool(root) and path.is_relative_to(root)


def _has_temp_marker(path: PurePath) -> bool:
    return any(part.lower() in TEMP_MARKERS for part in path.parts[:-1])


def _has_cloud_marker(path: PurePath) -> bool:
    for part in path.parts[:-1]:
        lowered = part.lower()
        if lowered in CLOUD_SYNC_MARKERS or lowered.startswith(CLOUD_SYNC_PREFIXES):
            return True
    return False


def resolve_location(path: str, roots: PlatformRoots, volume: VolumeInfo | None) -> Location:
    """Derive the location of a file; the first matching rule wins.

    Args:
        path: Absolute file path.
        roots: Platform roots.
        volume: Volume holding the file, None if unknown.

    Returns:
        Location classification.
    """
    pure = PurePath(path)

    if _has_temp_marker(pure) or any(_is_under(pure, d) for d in roots.temp_dirs):
        return Location.TEMP_DIRECTORY
    if any(_is_under(pure, d) for d in roots.program_files):
        return Location.PROGRAM_FILES
    if any(_is_under(pure, d) for d in roots.system_dirs):
        return Location.SYSTEM_DIRECTORY
    if _has_cloud_marker(pure) or any(_is_under(pure, d) for d in roots.cloud_sync_dirs):
        return Location.CLOUD_SYNC
    if roots.user_profile and _is_under(pure, roots.user_profile):
        return Location.USER_PROFILE

    volume_root = volume.root if volume is not None else pure.anchor
    if os.path.normcase(volume_root) == os.path.normcase(roots.boot_root):
        return Location.SYSTEM_DRIVE

    if volume is None:
        return Location.UNKNOWN
    if volume.kind == VolumeKind.NETWORK:
        return Location.NETWORK_DRIVE
    if volume.kind == VolumeKind.REMOVABLE:
        return Location.REMOVABLE_DRIVE
    if volume.kind == VolumeKind.FIXED:
        return Location.EXTERNAL_DRIVE
    return Location.UNKNOWN


def score_priority(
    location: Location,
    name: str,
    size: int,
    depth: int,
    modified: datetime,
    accessed: datetime,
    now: datetime,
) -> Priority:
    """Score how worth keeping a file is.

    Starts at NORMAL and adds or subtracts one point per signal (two for
    temporary locations); the result is clamped onto the six levels.
    System and program locations are always PROTECTED.
    """
    if location in (Location.SYSTEM_DIRECTORY, Location.PROGRAM_FILES):
        return Priority.PROTECTED

    score = int(Priority.NORMAL)

    if location == Location.USER_PROFILE:
        score += 1
    if now - modified <= RECENT_WINDOW:
        score += 1
    if depth <= SHALLOW_DEPTH:
        score += 1
    if size > LARGE_FILE_BYTES:
        score += 1

    if location == Location.TEMP_DIRECTORY:
        score -= 2
    lowered = name.lower()
    if "copy" in lowered:
        score -= 1
    if "backup" in lowered:
        score -= 1
    if now - accessed > STALE_ACCESS_WINDOW:
        score -= 1
    if depth > DEEP_DEPTH:
        score -= 1

    score = min(max(score, int(Priority.VERY_LOW)), int(Priority.PROTECTED))
    return Priority(score)


def classify(
    path: str,
    size: int,
    modified: datetime,
    accessed: datetime,
    *,
    roots: PlatformRoots,
    volume: VolumeInfo | None,
    now: datetime,
) -> Classification:
    """Classify a file by location and retention priority.

    Args:
        path: Absolute file path.
        size: File size in bytes.
        modified: Last modification time.
        accessed: Last access time.
        roots: Platform roots.
        volume: Volume holding the file, None if unknown.
        now: Reference time for recency signals.

    Returns:
        Classification with location and priority.
    """
    location = resolve_location(path, roots, volume)
    priority = score_priority(
        location=location,
        name=PurePath(path).name,
        size=size,
        depth=path_depth(path),
        modified=modified,
        accessed=accessed,
        now=now,
    )
    return Classification(location=location, priority=priority)


class VolumeTable:
    """Maps paths to the mounted volume that holds them.

    Args:
        volumes: Explicit volume list. When None, the mount table of the
            running system is read.
    """

    def __init__(self, volumes: list[VolumeInfo] | None = None) -> None:
        self._volumes = volumes if volumes is not None else load_volumes()
        # Longest root first so nested mounts win
        self._volumes.sort(key=lambda v: len(v.root), reverse=True)

    @property
    def volumes(self) -> tuple[VolumeInfo, ...]:
        """Known volumes, longest root first."""
        return tuple(self._volumes)

    def lookup(self, path: str) -> VolumeInfo | None:
        """Return the volume holding ``path``, or None if unknown."""
        pure = PurePath(path)
        for volume in self._volumes:
            if _is_under(pure, volume.root):
                return volume
        return None


def load_volumes() -> list[VolumeInfo]:
    """Read the mount table of the running system.

    Returns an empty list when the platform offers no readable table.
    """
    if sys.platform == "win32":
        return _load_windows_volumes()

    mounts = Path("/proc/self/mounts")
    if mounts.exists():
        try:
            return _parse_mounts(mounts.read_text(encoding="utf-8"))
        except OSError as e:
            logger.warning("Cannot read mount table: %s", e)
            return []

    return []


_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def _parse_mounts(text: str) -> list[VolumeInfo]:
    """Parse ``/proc/self/mounts`` content into volumes."""
    volumes: list[VolumeInfo] = []
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 3:
            continue
        device, mountpoint, fstype = fields[0], fields[1], fields[2]
        mountpoint = _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), mountpoint)
        volumes.append(
            VolumeInfo(root=mountpoint, kind=_mount_kind(device, mountpoint, fstype), fstype=fstype)
        )
    return volumes


def _mount_kind(device: str, mountpoint: str, fstype: str) -> VolumeKind:
    if fstype in NETWORK_FSTYPES or device.startswith("//"):
        return VolumeKind.NETWORK
    if any(mountpoint.startswith(parent + "/") for parent in REMOVABLE_MOUNT_PARENTS):
        return VolumeKind.REMOVABLE
    if device.startswith("/dev/") and _sysfs_removable(device):
        return VolumeKind.REMOVABLE
    return VolumeKind.FIXED


def _sysfs_removable(device: str) -> bool:
    """Check the kernel's removable flag for a block device or its parent disk."""
    block = Path("/sys/class/block") / Path(device).name
    try:
        resolved = block.resolve()
        for candidate in (resolved / "removable", resolved.parent / "removable"):
            if candidate.exists():
                return candidate.read_text(encoding="utf-8").strip() == "1"
    except OSError:
        return False
    return False


def _load_windows_volumes() -> list[VolumeInfo]:
    import ctypes

    kinds = {
        2: VolumeKind.REMOVABLE,
        3: VolumeKind.FIXED,
        4: VolumeKind.NETWORK,
        5: VolumeKind.REMOVABLE,
        6: VolumeKind.FIXED,
    }
    kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
    bitmask = kernel32.GetLogicalDrives()
    volumes: list[VolumeInfo] = []
    for index, letter in enumerate(string.ascii_uppercase):
        if bitmask & (1 << index):
            root = f"{letter}:\\"
            drive_type = kernel32.GetDriveTypeW(root)
            volumes.append(VolumeInfo(root=root, kind=kinds.get(drive_type, VolumeKind.UNKNOWN)))
    return volumes


class Classifier:
    """Classifies files against a fixed environment snapshot.

    Args:
        roots: Platform roots. Detected from the environment if None.
        volumes: Volume table. Read from the system if None.
        now: Reference time for recency signals. Defaults to the current
            time at construction, so one scan uses one reference time.
    """

    def __init__(
        self,
        roots: PlatformRoots | None = None,
        volumes: VolumeTable | None = None,
        now: datetime | None = None,
    ) -> None:
        self._roots = roots if roots is not None else PlatformRoots.detect()
        self._volumes = volumes if volumes is not None else VolumeTable()
        self._now = now if now is not None else datetime.now(UTC)

    @property
    def roots(self) -> PlatformRoots:
        """Platform roots in use."""
        return self._roots

    def classify(
        self,
        path: str,
        size: int,
        modified: datetime,
        accessed: datetime,
    ) -> Classification:
        """Classify a file using the bound environment."""
        return classify(
            path,
            size,
            modified,
            accessed,
            roots=self._roots,
            volume=self._volumes.lookup(path),
            now=self._now,
        )
