"""Action execution for resolved duplicates.

Applies (or dry-runs) the action pending on each descriptor and reports
one outcome per descriptor. Per-file failures are isolated: an unreadable
or vanished file yields a failed outcome and the batch continues.
Contract violations are not caught.

Every ``ActionKind`` except NONE has exactly one handler in the dispatch
table built by ``ActionExecutor``.
"""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import time
import zipfile
import zlib
from collections.abc import Callable, Iterable
from pathlib import Path

from send2trash import send2trash

from dupectl.core.hasher import DEFAULT_CHUNK_SIZE
from dupectl.models.descriptor import ActionKind, FileDescriptor
from dupectl.models.errors import DupectlError, ProtectedFileError
from dupectl.models.outcome import ActionOutcome


class ActionFailedError(DupectlError):
    """Raised by a handler when an action cannot be carried out."""


Handler = Callable[[FileDescriptor], None]


class ActionExecutor:
    """Carries out pending actions on file descriptors.

    Args:
        dry_run: If True, report what would happen without touching the
            filesystem. Dry-run outcomes do not mark actions as executed.
        trash: Function sending a path to the platform trash.
        logger: Logger for per-file results.
    """

    def __init__(
        self,
        dry_run: bool = False,
        trash: Callable[[str], None] = send2trash,
        logger: logging.Logger | None = None,
    ) -> None:
        self._dry_run = dry_run
        self._trash = trash
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._handlers: dict[ActionKind, Handler] = {
            ActionKind.KEEP: self._leave,
            ActionKind.REVIEW: self._leave,
            ActionKind.DELETE: self._delete,
            ActionKind.RECYCLE: self._recycle,
            ActionKind.MOVE: self._move,
            ActionKind.RENAME: self._rename,
            ActionKind.CREATE_LINK: self._create_link,
            ActionKind.COMPRESS: self._compress,
            ActionKind.ARCHIVE: self._archive,
        }

    @property
    def dry_run(self) -> bool:
        """Whether the executor only simulates actions."""
        return self._dry_run

    @property
    def handled_actions(self) -> frozenset[ActionKind]:
        """Action kinds with a registered handler."""
        return frozenset(self._handlers)

    def execute(self, descriptors: Iterable[FileDescriptor]) -> list[ActionOutcome]:
        """Execute the pending action of every descriptor that has one.

        Args:
            descriptors: Descriptors to process. Those without an action
                are ignored.

        Returns:
            One ActionOutcome per descriptor with an action, in input order.

        Raises:
            ValueError: If ``descriptors`` is None.
            ProtectedFileError: If a protected file carries a destructive
                action.
        """
        if descriptors is None:
            msg = "Descriptor list cannot be None"
            raise ValueError(msg)

        outcomes: list[ActionOutcome] = []
        for descriptor in descriptors:
            if descriptor.action == ActionKind.NONE:
                continue
            outcomes.append(self.execute_one(descriptor))
        return outcomes

    def execute_one(self, descriptor: FileDescriptor) -> ActionOutcome:
        """Execute the pending action of a single descriptor."""
        action = descriptor.action
        if action.is_destructive and descriptor.protected:
            msg = f"Refusing {action.value} on protected file {descriptor.path}"
            raise ProtectedFileError(msg)

        start = time.perf_counter()

        if descriptor.action_executed:
            self._logger.debug("Already executed %s: %s", action.value, descriptor.path)
            return ActionOutcome(
                descriptor=descriptor,
                action=action,
                success=True,
                elapsed=time.perf_counter() - start,
                skipped=True,
            )

        if self._dry_run:
            self._logger.info("Dry-run: would %s %s", action.value, descriptor.path)
            return ActionOutcome(
                descriptor=descriptor,
                action=action,
                success=True,
                elapsed=time.perf_counter() - start,
                dry_run=True,
            )

        handler = self._handlers.get(action)
        if handler is None:
            msg = f"No handler for action {action.value}"
            raise ValueError(msg)

        try:
            handler(descriptor)
        except (OSError, ActionFailedError) as e:
            descriptor.mark_failed(str(e))
            self._logger.warning("Failed to %s %s: %s", action.value, descriptor.path, e)
            return ActionOutcome(
                descriptor=descriptor,
                action=action,
                success=False,
                error=str(e),
                elapsed=time.perf_counter() - start,
            )

        descriptor.mark_executed()
        self._logger.info("Done %s: %s", action.value, descriptor.path)
        return ActionOutcome(
            descriptor=descriptor,
            action=action,
            success=True,
            elapsed=time.perf_counter() - start,
        )

    # --- Handlers ---

    def _leave(self, descriptor: FileDescriptor) -> None:
        """KEEP and REVIEW leave the file where it is."""

    def _delete(self, descriptor: FileDescriptor) -> None:
        path = Path(descriptor.path)
        path.unlink(missing_ok=True)
        if path.exists() or path.is_symlink():
            msg = f"File still exists after delete: {descriptor.path}"
            raise ActionFailedError(msg)

    def _recycle(self, descriptor: FileDescriptor) -> None:
        path = Path(descriptor.path)
        if not path.exists() and not path.is_symlink():
            return

        try:
            self._trash(descriptor.path)
        except OSError as e:
            self._logger.warning(
                "Trash unavailable for %s (%s), deleting instead", descriptor.path, e
            )
            self._delete(descriptor)

    def _move(self, descriptor: FileDescriptor) -> None:
        destination = Path(_require_target(descriptor))
        if destination.is_dir():
            destination = destination / descriptor.name
        self._relocate_file(descriptor, destination)

    def _rename(self, descriptor: FileDescriptor) -> None:
        target = _require_target(descriptor)
        destination = Path(target)
        # A bare name stays in the file's own directory
        if destination.name == target:
            destination = Path(descriptor.directory) / target
        self._relocate_file(descriptor, destination)

    def _create_link(self, descriptor: FileDescriptor) -> None:
        source = Path(descriptor.path)
        link_target = Path(_require_target(descriptor))
        if not link_target.is_file():
            msg = f"Link target does not exist: {link_target}"
            raise ActionFailedError(msg)
        if source.exists() and os.path.samefile(source, link_target):
            msg = f"Link target is the file itself: {link_target}"
            raise ActionFailedError(msg)

        staging = source.with_name(f".{source.name}.dupectl-link")
        staging.unlink(missing_ok=True)
        try:
            os.link(link_target, staging)
        except OSError as e:
            self._logger.debug("Hard link failed for %s (%s), using symlink", source, e)
            staging.symlink_to(link_target.resolve())
        os.replace(staging, source)

    def _compress(self, descriptor: FileDescriptor) -> None:
        source = Path(descriptor.path)
        destination = Path(descriptor.target_path or f"{descriptor.path}.gz")
        if destination.exists():
            msg = f"Destination already exists: {destination}"
            raise ActionFailedError(msg)

        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            with source.open("rb") as fin, gzip.open(destination, "wb") as fout:
                shutil.copyfileobj(fin, fout)
            shutil.copystat(source, destination)
        except OSError:
            destination.unlink(missing_ok=True)
            raise

        source.unlink()
        descriptor.relocate(os.path.abspath(destination))

    def _archive(self, descriptor: FileDescriptor) -> None:
        source = Path(descriptor.path)
        archive = Path(_require_target(descriptor))
        archive.parent.mkdir(parents=True, exist_ok=True)

        with zipfile.ZipFile(archive, "a", compression=zipfile.ZIP_DEFLATED) as zf:
            existing = _archived_member(zf, descriptor)
            if existing is None:
                zf.write(source, arcname=_unique_member_name(zf, descriptor))
            else:
                self._logger.debug("%s already archived as %s", source, existing)

        source.unlink()

    def _relocate_file(self, descriptor: FileDescriptor, destination: Path) -> None:
        if destination.exists():
            msg = f"Destination already exists: {destination}"
            raise ActionFailedError(msg)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(descriptor.path, destination)
        descriptor.relocate(os.path.abspath(destination))


def _require_target(descriptor: FileDescriptor) -> str:
    if not descriptor.target_path:
        msg = f"{descriptor.action.value} requires a target path: {descriptor.path}"
        raise ActionFailedError(msg)
    return descriptor.target_path


def _unique_member_name(zf: zipfile.ZipFile, descriptor: FileDescriptor) -> str:
    """Archive member name for a file, disambiguated if already taken."""
    names = set(zf.namelist())
    if descriptor.name not in names:
        return descriptor.name

    stem, suffix = os.path.splitext(descriptor.name)
    tag = descriptor.fingerprint.short if descriptor.fingerprint else "dup"
    candidate = f"{stem}-{tag}{suffix}"
    counter = 1
    while candidate in names:
        candidate = f"{stem}-{tag}-{counter}{suffix}"
        counter += 1
    return candidate


def _crc32(path: str) -> int:
    crc = 0
    with open(path, "rb") as f:
        while chunk := f.read(DEFAULT_CHUNK_SIZE):
            crc = zlib.crc32(chunk, crc)
    return crc


def _archived_member(zf: zipfile.ZipFile, descriptor: FileDescriptor) -> str | None:
    """Name of a member already holding this file's content, if any.

    Only members named after the file are considered, so a retry after a
    failed removal of the original does not store a second copy.
    """
    stem, suffix = os.path.splitext(descriptor.name)
    candidates = [
        info
        for info in zf.infolist()
        if info.file_size == descriptor.size
        and (
            info.filename == descriptor.name
            or (info.filename.startswith(f"{stem}-") and info.filename.endswith(suffix))
        )
    ]
    if not candidates:
        return None
    crc = _crc32(descriptor.path)
    for info in candidates:
        if info.CRC == crc:
            return info.filename
    return None
