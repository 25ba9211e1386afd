"""
Dealer network model
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from partner_portal.core.database import Base


class Dealer(Base):
    """
    Dealer record owned by exactly one partner
    """
    __tablename__ = "dealer_network"

    id = Column(Integer, primary_key=True, index=True)
    partner_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # Owner, never reassigned

    company_name = Column(String, nullable=False)
    contact_person = Column(String, nullable=True)
    phone_number = Column(String, nullable=False)
    gstin_number = Column(String, nullable=True)  # GST identification number
    address = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    partner = relationship("User", back_populates="dealers")

    @property
    def partner_username(self):
        return self.partner.username if self.partner else None

    def __repr__(self):
        return f"<Dealer {self.company_name} (owner={self.partner_user_id})>"
