"""Plain-text rendering of analysis reports."""

from archivist.models import AnalysisReport

PREVIEW_LIMIT = 500

SECTIONS = (
    ("errors", "❌ Syntax Errors"),
    ("warnings", "⚠️ Warnings"),
    ("suggestions", "💡 Suggestions"),
    ("domain_notes", "🎮 Bedrock-Specific Notes"),
    ("performance_issues", "🐢 Performance Issues"),
)

ALL_CLEAR = "✅ No obvious syntax errors detected! Code appears to be well-formed."


def preview(code: str, limit: int = PREVIEW_LIMIT) -> str:
    return code[:limit] + "..." if len(code) > limit else code


def render(report: AnalysisReport, code: str | None = None) -> str:
    parts = []
    if code is not None:
        parts.append("📝 Code Preview\n" + preview(code))
    for attr, title in SECTIONS:
        items = getattr(report, attr)
        if items:
            parts.append(title + "\n" + "\n".join(f"• {item}" for item in items))
    if report.is_clean:
        parts.append(ALL_CLEAR)
    return "\n\n".join(parts)
