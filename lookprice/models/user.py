from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from lookprice.core.database import Base

ROLE_SUPERADMIN = "superadmin"
ROLE_STOREADMIN = "storeadmin"
ROLE_EDITOR = "editor"
ROLE_VIEWER = "viewer"

ALL_ROLES = {ROLE_SUPERADMIN, ROLE_STOREADMIN, ROLE_EDITOR, ROLE_VIEWER}
TEAMMATE_ROLES = {ROLE_EDITOR, ROLE_VIEWER}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Only the superadmin has no store.
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=True, index=True)

    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_VIEWER)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
