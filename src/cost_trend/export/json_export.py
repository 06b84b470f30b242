"""JSON rendering of a finished report set."""

import json
import logging
from pathlib import Path

from ..analysis.models import ReportSet

logger = logging.getLogger(__name__)


def render_json(report_set: ReportSet) -> str:
    """
    Serialize accounts, unified view and global summary.

    Month maps are already key-sorted on the models, so rendering the same
    report set twice gives identical text.
    """
    return json.dumps(report_set.to_document(), indent=2)


def save_json(report_set: ReportSet, filename: str | Path) -> bool:
    """
    Save the JSON document to a file.

    Returns:
        True if save was successful
    """
    try:
        with open(filename, "w", encoding="utf-8") as f:
            f.write(render_json(report_set))
            f.write("\n")
    except OSError as e:
        logger.error(f"Failed to save JSON report to {filename}: {e}")
        return False

    logger.info(f"JSON report saved to file: {filename}")
    return True
