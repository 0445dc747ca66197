from sqlalchemy import Column, String, Text

from flow_reader.db.base import Base


class Setting(Base):
    """Key/value row for user preferences (API key, model, theme)."""

    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)
