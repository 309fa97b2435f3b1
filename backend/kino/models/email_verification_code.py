from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from kino.core.base import Base

PURPOSE_CONFIRM_EMAIL = "confirm_email"


class EmailVerificationCode(Base):
    __tablename__ = "email_verification_codes"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    purpose = Column(String(32), nullable=False, default=PURPOSE_CONFIRM_EMAIL, server_default=PURPOSE_CONFIRM_EMAIL)
    # HMAC of the code; the raw code only ever lives in the outgoing email.
    code_hash = Column(String(128), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="email_verification_codes")

    def mark_consumed(self, when: datetime) -> None:
        self.consumed_at = when
