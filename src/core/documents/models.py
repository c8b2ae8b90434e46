from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base


class Sequence(Base):
    """Durable counter row, one per sequence key.

    ``dernier_numero`` is the last number issued for ``annee``; it restarts from 0
    when the year changes. Rows are created lazily and never deleted.
    """

    __tablename__ = "sequences"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    dernier_numero: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    annee: Mapped[int] = mapped_column(Integer, nullable=False)
