# dokon/data/models/courier_assignment.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, String

from dokon.data.database import Base


class CourierAssignmentModel(Base):
    __tablename__ = "courier_assignments"

    id = Column(String, primary_key=True)
    order_id = Column(String, nullable=False, index=True)
    courier_id = Column(String, nullable=True, index=True)
    # pending, accepted, rejected, shipping, delivered
    status = Column(String, nullable=False, default="pending")
    distance = Column(Float, nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
