import logging

from archivist.analysis import rules, syntax
from archivist.models import AnalysisReport

logger = logging.getLogger(__name__)


def analyze(source: str) -> AnalysisReport:
    """Run every rule over ``source`` and merge the findings.

    The full parse comes first; a syntax error is reported but never stops the
    heuristic rules. Structural checks only run on a cleanly parsed tree.
    """
    report = AnalysisReport()
    parsed = syntax.parse(source)
    if parsed.error:
        report.errors.append(parsed.error)

    lexed = rules.Source.of(source)
    for rule in rules.RULES:
        try:
            report.extend(rule(lexed, parsed.root))
        except Exception as e:
            logger.exception(f"Rule {rule.__name__} failed")
            report.errors.append(f"Analysis error: {e}")
    return report
