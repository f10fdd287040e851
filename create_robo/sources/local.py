"""Bundled project kits and the rules for choosing one."""

from __future__ import annotations

import asyncio
import shutil
from enum import Enum
from pathlib import Path

from create_robo.models import Role

KITS_DIR = Path(__file__).resolve().parent.parent / "kits"


class LocalTemplate(str, Enum):
    """Identifiers of the kits shipped under ``create_robo/kits/``."""
    ACTIVITY_COLYSEUS_REACT = "activity-ts-colyseus-react"
    APP_TS_REACT = "app-ts-react"
    APP_JS_REACT = "app-js-react"
    APP_TS = "app-ts"
    APP_JS = "app-js"
    BOT_TS = "bot-ts"
    BOT_JS = "bot-js"


def select_local_template(
    role: Role,
    typescript: bool,
    has_ui_framework: bool,
    has_multiplayer_framework: bool,
) -> LocalTemplate:
    """Pick the kit for a role/typing/capability combination.

    Precedence: multiplayer + UI app > UI app > app > bot.  The multiplayer
    kit only exists in TypeScript and is used for both typing choices.
    """
    is_app = role is Role.APP
    if is_app and has_ui_framework and has_multiplayer_framework:
        return LocalTemplate.ACTIVITY_COLYSEUS_REACT
    if is_app and has_ui_framework:
        return LocalTemplate.APP_TS_REACT if typescript else LocalTemplate.APP_JS_REACT
    if is_app:
        return LocalTemplate.APP_TS if typescript else LocalTemplate.APP_JS
    return LocalTemplate.BOT_TS if typescript else LocalTemplate.BOT_JS


async def copy_local_template(
    template: LocalTemplate,
    target_dir: str | Path,
    kits_dir: str | Path = KITS_DIR,
) -> list[Path]:
    """Copy every file of *template* into *target_dir*.

    Existing files with the same relative path are overwritten; other files
    in *target_dir* are left alone.

    Returns:
        Sorted list of written file paths.
    """
    source = Path(kits_dir) / template.value
    if not source.is_dir():
        raise FileNotFoundError(f"Project kit not found: {source}")
    target = Path(target_dir)
    return await asyncio.to_thread(_copy_tree, source, target)


def _copy_tree(source: Path, target: Path) -> list[Path]:
    written: list[Path] = []
    for item in sorted(source.rglob("*")):
        if not item.is_file():
            continue
        destination = target / item.relative_to(source)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(item, destination)
        written.append(destination)
    return written
