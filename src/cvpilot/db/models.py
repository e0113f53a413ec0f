from __future__ import annotations

from sqlalchemy import Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cvpilot.db.base import Base, TimestampMixin


class StoreRecord(TimestampMixin, Base):
    __tablename__ = "store_records"
    __table_args__ = (UniqueConstraint("namespace", "key", name="uq_store_records_namespace_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    namespace: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(120), nullable=False)
    value: Mapped[str] = mapped_column(Text, default="", nullable=False)
