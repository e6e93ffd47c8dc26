from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Integer, String, Text

from lookprice.core.config import DEFAULT_CURRENCY, DEFAULT_PRIMARY_COLOR
from lookprice.core.database import Base


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)

    address = Column(Text, nullable=True)
    contact_person = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)

    # Null means the subscription never expires.
    subscription_end = Column(Date, nullable=True)

    logo_url = Column(String, nullable=True)
    primary_color = Column(String(7), nullable=False, default=DEFAULT_PRIMARY_COLOR)
    background_image_url = Column(String, nullable=True)
    default_currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
