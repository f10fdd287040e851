"""Jinja2 rendering of the files a generated Robo project needs.

``TemplateRenderer`` loads ``.j2`` files from ``templates/`` next to this
module: ``robo.mjs`` and plugin config modules, tooling dotfiles,
``env.d.ts``, and the README/DEVELOPMENT docs.  Rendering is strict, so a
context missing a variable raises instead of writing an empty string.
Plugin configs are Python dicts turned into JavaScript source by the
``js_literal`` filter.
"""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from create_robo.utils import write_text

TEMPLATES_DIR = Path(__file__).parent / "templates"


class TemplateRenderer:
    """Renders the bundled project templates.

    Usage::

        renderer = TemplateRenderer()
        await renderer.render_to_file("gitignore.j2", root / ".gitignore", context)
    """

    def __init__(self, template_dir: str | Path = TEMPLATES_DIR) -> None:
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["js_literal"] = to_js_literal

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render *template_path* (relative to the template dir, e.g. ``"config/robo.mjs.j2"``).

        Raises:
            jinja2.UndefinedError: If the template uses a name *context* lacks.
        """
        return self.env.get_template(template_path).render(context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render and write to *output_path*, creating parents.  Returns the path."""
        output = Path(output_path)
        await asyncio.to_thread(write_text, output, self.render(template_path, context))
        return output


# ---------------------------------------------------------------------------
# JavaScript literal serialisation
# ---------------------------------------------------------------------------

_JS_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_ENV_REFERENCE = re.compile(r"^process\.env\.[A-Za-z_][A-Za-z0-9_]*$")


def to_js_literal(value: Any, level: int = 0) -> str:
    """Serialise *value* as a tab-indented JavaScript object literal.

    Keys that are valid identifiers are left bare, strings use single
    quotes, and strings of the form ``process.env.NAME`` are emitted as
    expressions so the generated config reads the environment at runtime.
    """
    pad = "\t" * (level + 1)
    closing = "\t" * level

    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, str):
        if _ENV_REFERENCE.match(value):
            return value
        return _js_string(value)
    if isinstance(value, dict):
        if not value:
            return "{}"
        entries = [
            f"{pad}{_js_key(str(key))}: {to_js_literal(item, level + 1)}"
            for key, item in value.items()
        ]
        return "{\n" + ",\n".join(entries) + f"\n{closing}}}"
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        items = [f"{pad}{to_js_literal(item, level + 1)}" for item in value]
        return "[\n" + ",\n".join(items) + f"\n{closing}]"
    raise TypeError(f"Cannot serialise {type(value).__name__} as a JavaScript literal")


def _js_key(key: str) -> str:
    return key if _JS_IDENTIFIER.match(key) else _js_string(key)


def _js_string(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"
