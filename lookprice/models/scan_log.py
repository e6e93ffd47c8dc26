from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer

from lookprice.core.database import Base


class ScanLog(Base):
    __tablename__ = "scan_logs"
    __table_args__ = (Index("ix_scan_logs_store_created", "store_id", "created_at"),)

    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
