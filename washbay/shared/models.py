"""Column helpers shared by every table: ULID keys and audit timestamps."""

from datetime import datetime

import ulid
from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column


def generate_ulid() -> str:
    return str(ulid.new())


class TimestampMixin:
    """Database-side ``created_at``/``updated_at``; lifecycle stamps live on the model."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
