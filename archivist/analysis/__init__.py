"""Static checks and automatic fixes for Minecraft Bedrock script source."""

from .analyzer import analyze
from .extract import extract_code
from .fixer import add_semicolons, modernize_declarations, suggest_fixes

__all__ = [
    "analyze",
    "extract_code",
    "add_semicolons",
    "modernize_declarations",
    "suggest_fixes",
]
