from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    TIMESTAMP,
    Text,
)
from sqlalchemy.sql import func

from tourbot.core.database import Base


# =========================
# Answer (definition store)
# =========================
class Answer(Base):
    """
    One versioned answer template for an industry term.

    Rows are written by the content tooling; the assistant only reads
    the current, highest-versioned template per (term_id, locale).
    """

    __tablename__ = "tm_answers"

    id = Column(Integer, primary_key=True, autoincrement=True)

    term_id = Column(String, nullable=False, index=True)  # "soundcheck", "rider"
    locale = Column(String, nullable=False, server_default="en-AU")
    version = Column(Integer, nullable=False, server_default="1")

    answer_template = Column(Text, nullable=False)

    # superseded rows stay for history
    is_current = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
