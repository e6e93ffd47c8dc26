from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from lookprice.core.database import Base

LEAD_STATUSES = {"new", "contacted", "closed"}


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    store_name = Column(String, nullable=True)
    message = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="new")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
