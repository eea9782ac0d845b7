from .loader import render, render_source
from .templates import Template

__all__ = [
    "Template",
    "render",
    "render_source",
]
