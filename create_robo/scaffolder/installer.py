"""Dependency installation and plugin registration.

Installation runs in two phases through the detected package manager: runtime
dependencies, then development dependencies.  A failure in either phase is
recoverable; the manifest is then written with its dependency maps filled in
so the user can install by hand.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

from create_robo.manifest import BuiltManifest
from create_robo.models import PackageManifest
from create_robo.utils import (
    cmd,
    format_command,
    get_package_executor,
    load_json,
    print_debug,
    print_warning,
    run_command,
    save_json,
)


@dataclass
class InstallOutcome:
    manifest: PackageManifest
    install_failed: bool = False
    skipped: bool = False


class InstallOrchestrator:
    """Runs the package manager and ``robo add`` inside a project directory."""

    def __init__(
        self,
        working_dir: Path,
        package_manager: str = "npm",
        *,
        timeout: int = 600,
        verbose: bool = False,
    ) -> None:
        self.working_dir = working_dir
        self.package_manager = package_manager
        self.timeout = timeout
        self.verbose = verbose

    @property
    def package_json_path(self) -> Path:
        return self.working_dir / "package.json"

    # -- Commands ----------------------------------------------------------

    def install_command(self, packages: list[str], dev: bool = False) -> list[str]:
        """``npm install <pkgs>`` or ``<pm> add <pkgs>``, with the dev flag for phase 2."""
        verb = "install" if self.package_manager == "npm" else "add"
        command = [cmd(self.package_manager), verb]
        if dev:
            command.append("--dev" if self.package_manager == "yarn" else "--save-dev")
        return command + packages

    def register_command(self, packages: list[str]) -> list[str]:
        return [cmd(get_package_executor(self.package_manager)), "robo", "add", *packages]

    # -- Install -----------------------------------------------------------

    async def install(self, built: BuiltManifest, install: bool = True) -> InstallOutcome:
        """Write ``package.json`` and install its dependencies.

        With *install* disabled, the manifest is written with populated
        dependency maps and no subprocess runs.  After a successful install
        the manifest is re-read, since the package manager rewrites it.
        """
        if not install:
            await self.write_manifest(built.manifest)
            return InstallOutcome(manifest=built.manifest, skipped=True)

        await self.write_manifest(built.without_dependencies())

        phases = [(built.dependencies, False), (built.dev_dependencies, True)]
        for packages, dev in phases:
            if not packages:
                continue
            command = self.install_command(packages, dev=dev)
            print_debug(f"Running {format_command(command)}", self.verbose)
            returncode, _stdout, stderr = await run_command(
                command, cwd=self.working_dir, timeout=self.timeout
            )
            if returncode != 0:
                print_debug(stderr, self.verbose)
                await self.write_manifest(built.manifest)
                print_warning(
                    f"Could not install dependencies! Run "
                    f"[bold]{format_command(self.install_command([]))}[/bold] "
                    "inside the project to finish."
                )
                return InstallOutcome(manifest=built.manifest, install_failed=True)

        manifest = await self.read_manifest()
        return InstallOutcome(manifest=manifest)

    async def install_existing(self, install: bool = True) -> InstallOutcome:
        """Install whatever ``package.json`` a downloaded template shipped."""
        manifest = await self.read_manifest()
        if not install:
            return InstallOutcome(manifest=manifest, skipped=True)

        command = [cmd(self.package_manager), "install"]
        print_debug(f"Running {format_command(command)}", self.verbose)
        returncode, _stdout, stderr = await run_command(
            command, cwd=self.working_dir, timeout=self.timeout
        )
        if returncode != 0:
            print_debug(stderr, self.verbose)
            print_warning(
                f"Could not install dependencies! Run [bold]{format_command(command)}[/bold] "
                "inside the project to finish."
            )
            return InstallOutcome(manifest=manifest, install_failed=True)
        return InstallOutcome(manifest=await self.read_manifest())

    async def register_plugins(self, packages: list[str]) -> bool:
        """Register *packages* with ``<executor> robo add``.

        Returns ``False`` after printing a warning when the command fails.
        """
        if not packages:
            return True
        command = self.register_command(packages)
        print_debug(f"Running {format_command(command)}", self.verbose)
        returncode, _stdout, stderr = await run_command(
            command, cwd=self.working_dir, timeout=self.timeout
        )
        if returncode != 0:
            print_debug(stderr, self.verbose)
            executor = get_package_executor(self.package_manager)
            print_warning(
                f"Could not install plugins! Please add them manually using "
                f"[bold]{executor} robo add[/bold]."
            )
            return False
        return True

    # -- Manifest I/O ------------------------------------------------------

    async def write_manifest(self, manifest: PackageManifest) -> None:
        await save_json(manifest.to_json_dict(), self.package_json_path)

    async def read_manifest(self) -> PackageManifest:
        data = await asyncio.to_thread(load_json, self.package_json_path)
        return PackageManifest.model_validate(data)
