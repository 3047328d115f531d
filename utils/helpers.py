import logging
import re

from sqlalchemy.exc import SQLAlchemyError

from classes.exceptions import PersistenceFailure
from models import db

logger = logging.getLogger(__name__)


LATEX_BLOCK = re.compile(r"\$\$[\s\S]*?\$\$")
LATEX_INLINE = re.compile(r"(?<!\$)\$(?!\$).*?\$(?!\$)")
PLACEHOLDER = re.compile(r"__LATEX_(BLOCK|INLINE)_(\d+)__")


def clean_question_text(text):
    """
    Normalize question text imported from PDFs.

    Broken lines are merged and whitespace runs collapsed, while LaTeX
    spans ($...$ and $$...$$) are kept exactly as written.
    """
    if not text:
        return text

    blocks = []
    inline = []

    def keep_block(match):
        blocks.append(match.group(0))
        return f"__LATEX_BLOCK_{len(blocks) - 1}__"

    def keep_inline(match):
        inline.append(match.group(0))
        return f"__LATEX_INLINE_{len(inline) - 1}__"

    cleaned = LATEX_BLOCK.sub(keep_block, text)
    cleaned = LATEX_INLINE.sub(keep_inline, cleaned)

    cleaned = re.sub(r"\r?\n", " ", cleaned)
    cleaned = re.sub(r"\s{2,}", " ", cleaned).strip()

    def restore(match):
        source = blocks if match.group(1) == "BLOCK" else inline
        return source[int(match.group(2))]

    return PLACEHOLDER.sub(restore, cleaned)


def parse_bool(value):
    """Read a boolean from JSON or a form/query string."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1", "yes"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "0", "no"):
        return False
    return None


def allowed_file(filename, allowed_extensions):
    return "." in filename and filename.rsplit(".", 1)[1].lower() in allowed_extensions


def commit_or_fail(message):
    """Commit the session, rolling back and raising PersistenceFailure on a database error."""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception(message)
        raise PersistenceFailure(message) from e
