"""Native addon resolution.

Native addons (``*.node`` files) are built for one platform, architecture and
runtime ABI. When the target differs from the machine that installed the
addon, the copy in the source tree is the wrong binary to embed. This module
fetches a matching prebuilt binary with ``prebuild-install``.

``prebuild-install`` overwrites the addon in place, so the resolver:

- takes a backup of the original (``<file>.bak``),
- runs the tool from the addon's project directory,
- copies the result to ``<file>.<platform>.<version>``,
- restores the original from the backup.

The copy is reused by later builds for the same platform and version. The
resolver blocks the producer until the external process exits.
"""

import logging
import os
import pathlib
import shutil
import subprocess
from typing import Protocol

from exe_stitcher.errors import NativeAddonError
from exe_stitcher.target import Platform, Target, runtime_version


DEFAULT_PREBUILD_INSTALL: str = "prebuild-install"
PREBUILD_INSTALL_ENV: str = "EXE_STITCHER_PREBUILD_INSTALL"


class AddonResolver(Protocol):
    """Capability used by the producer to swap native addons per target."""

    def resolve(self, node_file: pathlib.Path, target: Target) -> pathlib.Path | None:
        """Return a target-specific copy of ``node_file``, or ``None`` if unresolved."""
        ...


def prebuild_platform(platform: Platform) -> str:
    """Map a :class:`Platform` to the platform name ``prebuild-install`` expects."""

    if platform is Platform.MACOS:
        return "darwin"
    if platform is Platform.WIN:
        return "win32"
    if platform is Platform.FREEBSD:
        return "freebsd"
    if platform is Platform.LINUX or platform is Platform.LINUXSTATIC or platform is Platform.ALPINE:
        return "linux"
    raise AssertionError(f"Unhandled platform: {platform}")


def find_project_dir(node_file: pathlib.Path) -> pathlib.Path:
    """Find the nearest ancestor directory that holds a ``package.json``.

    :param node_file: Native addon file.
    :returns: Project directory owning the addon.
    :raises NativeAddonError: If no ancestor has a ``package.json``.
    """

    for parent in node_file.absolute().parents:
        if (parent / "package.json").is_file() is True:
            return parent
    raise NativeAddonError(f'package.json not found for "{node_file}"')


def _default_tool() -> str:
    return os.environ.get(PREBUILD_INSTALL_ENV, DEFAULT_PREBUILD_INSTALL)


class PrebuildInstallResolver:
    """Resolve native addons by running ``prebuild-install``.

    :param tool: Executable to run; defaults to ``$EXE_STITCHER_PREBUILD_INSTALL``
        or ``prebuild-install`` on ``PATH``.
    :param logger: Optional logger.
    """

    def __init__(
        self,
        *,
        tool: str | os.PathLike[str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if logger is None:
            logger = logging.getLogger("exe_stitcher")
        self._tool: str = os.fspath(tool) if tool is not None else _default_tool()
        self._logger: logging.Logger = logger

    def resolve(self, node_file: pathlib.Path, target: Target) -> pathlib.Path | None:
        """Return a copy of ``node_file`` built for ``target``.

        :param node_file: Native addon in the source tree.
        :param target: Build target.
        :returns: Path of the platform-specific copy, or ``None`` if fetching failed.
        :raises ConfigurationError: If the runtime version cannot be read from the target.
        """

        version: str = runtime_version(target.binary_path)
        native_file: pathlib.Path = node_file.with_name(
            f"{node_file.name}.{target.platform.value}.{version}"
        )
        if native_file.exists() is True:
            if self._logger.isEnabledFor(logging.DEBUG) is True:
                self._logger.debug(f"exe-stitcher: native addon cache hit {native_file}")
            return native_file

        try:
            self._fetch(node_file=node_file, native_file=native_file, target=target, version=version)
        except (NativeAddonError, OSError) as e:
            self._logger.debug(f"exe-stitcher: prebuild-install failed[{node_file}]: {e}")
            return None
        return native_file

    def _fetch(
        self,
        *,
        node_file: pathlib.Path,
        native_file: pathlib.Path,
        target: Target,
        version: str,
    ) -> None:
        """Run the tool and move its result aside.

        :raises NativeAddonError: If the tool fails or the project is not found.
        :raises OSError: If the backup, copy or restore fails.
        """

        project_dir: pathlib.Path = find_project_dir(node_file)
        backup: pathlib.Path = node_file.with_name(f"{node_file.name}.bak")
        if backup.exists() is False:
            shutil.copyfile(node_file, backup)

        cmd: list[str] = [
            self._tool,
            "-t",
            version,
            "--platform",
            prebuild_platform(target.platform),
            "--arch",
            target.arch,
        ]
        self._logger.info(
            f"exe-stitcher: fetching native addon {node_file.name} "
            f"for {target.platform.value}-{target.arch}-{version}"
        )
        if self._logger.isEnabledFor(logging.DEBUG) is True:
            self._logger.debug(f"exe-stitcher: running {' '.join(cmd)} in {project_dir}")

        try:
            try:
                proc = subprocess.run(cmd, cwd=project_dir, capture_output=True, check=False)
            except OSError as e:
                raise NativeAddonError(f"Could not run {self._tool}: {e}") from e
            if proc.returncode != 0:
                stderr: str = proc.stderr.decode("utf-8", errors="replace").strip()
                raise NativeAddonError(
                    f"{self._tool} failed (exit={proc.returncode}): {stderr}"
                )
            tmp_file: pathlib.Path = native_file.with_name(f"{native_file.name}.tmp")
            shutil.copyfile(node_file, tmp_file)
            tmp_file.replace(native_file)
        finally:
            shutil.copyfile(backup, node_file)
