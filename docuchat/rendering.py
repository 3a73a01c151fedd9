import logging
from typing import Optional

import markdown
import nh3

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]


def render_markdown(content: str) -> Optional[str]:
    """
    Render message markdown to sanitized HTML.

    Returns None when rendering fails; callers then show the raw text.
    """
    try:
        html = markdown.markdown(content, extensions=MARKDOWN_EXTENSIONS)
    except Exception as e:
        logger.warning("Markdown rendering failed: %s", e)
        return None
    return nh3.clean(html)
