"""Access records: sport path purchases and demo allow-list."""

from enum import Enum
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Uuid
import uuid

from app.core.database import Base, utcnow


class PurchaseStatus(str, Enum):
    """Lifecycle of a sport path purchase."""
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class SportPurchase(Base):
    """A user's purchase of a sport path."""
    __tablename__ = "sport_purchases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    sport_path_id = Column(Uuid, ForeignKey("sport_paths.id"), nullable=False)
    purchase_type = Column(String, nullable=False, default="stripe")
    status = Column(String, nullable=False, default=PurchaseStatus.PENDING.value)
    purchased_at = Column(DateTime(timezone=True), default=utcnow)


class SportDemoUser(Base):
    """Demo allow-list entry for a sport path."""
    __tablename__ = "sport_demo_users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    sport_path_id = Column(Uuid, ForeignKey("sport_paths.id"), nullable=False)
    notes = Column(String)
    granted_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "sport_path_id"),
    )
