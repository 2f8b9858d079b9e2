from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Name of the counter row backing next_id()
URL_SEQUENCE = 'url_records'


class Base(DeclarativeBase):
    pass


class UrlRecordRow(Base):
    """Table of URL records.

    NOTE: custom-alias records store the alias in `code` as well, so the
          UNIQUE(code) constraint alone enforces the shared code/alias namespace.
          UNIQUE(alias) backs find_by_alias().
    """

    __tablename__ = 'url_records'

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    target: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    alias: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)

    __table_args__ = (CheckConstraint('clicks >= 0', name='ck_url_records_clicks_non_negative'),)


class SequenceRow(Base):
    """Counter table emulating a database sequence (advanced with UPDATE ... RETURNING)."""

    __tablename__ = 'url_sequences'

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
