"""
Prompt rendering for the skill engine.

Two kinds of sources are rendered here: the engine's own shared messages,
stored as .jinja2 files next to this module, and the inline prompt sources a
SkillDefinition carries on each state. Both render as a pure function of the
variables passed in, so identical context gives identical text.
"""

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, Template as JinjaTemplate

from .templates import Template

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _check_template_files():
    """Every Template constant must have a file. Raises at import otherwise."""
    missing = [
        TEMPLATES_DIR / f"{value}.jinja2"
        for key, value in vars(Template).items()
        if not key.startswith("_")
    ]
    missing = [path for path in missing if not path.exists()]
    if missing:
        raise FileNotFoundError(f"Engine templates missing: {', '.join(map(str, missing))}")


_check_template_files()


@lru_cache(maxsize=1)
def _environment() -> Environment:
    # Prompts are plain chat text; block tags must not leave blank lines behind
    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=False,
    )


@lru_cache(maxsize=256)
def _compile(source: str) -> JinjaTemplate:
    return _environment().from_string(source)


def render(name: str, **variables) -> str:
    """
    Render one of the engine's shared messages.

    Args:
        name: A Template constant (file name without the .jinja2 extension).
        **variables: Values exposed to the template.
    """
    template = _environment().get_template(f"{name}.jinja2")
    return template.render(**variables).strip()


def render_source(source: str, **variables) -> str:
    """Render an inline prompt source such as StateSpec.prompt."""
    return _compile(source).render(**variables).strip()
