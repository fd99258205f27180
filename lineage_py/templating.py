from __future__ import annotations
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pathlib import Path
from typing import Any, Dict, Optional

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def get_env(templates_dir: Optional[str | Path] = None) -> Environment:
    templates_dir = str(templates_dir or TEMPLATES_DIR)
    return Environment(
        loader=FileSystemLoader(templates_dir),
        autoescape=select_autoescape(["html", "xml"]),
        keep_trailing_newline=True,
    )


def render_template(template_name: str, ctx: Dict[str, Any], templates_dir: Optional[str | Path] = None) -> str:
    env = get_env(templates_dir)
    tmpl = env.get_template(template_name)
    return tmpl.render(**ctx)
