"""Pasta ORM model."""

from sqlalchemy import Boolean, Column, Integer, String, Text

from database import Base


class PastaModel(Base):
    __tablename__ = "pastas"

    id = Column(Integer, primary_key=True, autoincrement=False)
    content = Column(Text, nullable=False, default="")
    kind = Column(String, nullable=False, default="text")
    extension = Column(String, nullable=False, default="")
    private = Column(Boolean, nullable=False, default=False)
    editable = Column(Boolean, nullable=False, default=False)
    created = Column(Integer, nullable=False)
    expiration = Column(Integer, nullable=False, default=0)
    burn_after_reads = Column(Integer, nullable=False, default=0)
    read_count = Column(Integer, nullable=False, default=0)
    last_read = Column(Integer, nullable=False)
    file_name = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
