# app/models/profile.py
from sqlalchemy import Column, String, Boolean, Date, DateTime, CheckConstraint
from sqlalchemy.sql import func, expression
from sqlalchemy.orm import relationship

from app.database import Base

ROLE_APPLICANT = "applicant"
ROLE_ADMIN = "admin"


class Profile(Base):
    __tablename__ = "profile"
    __table_args__ = (
        CheckConstraint("role IN ('applicant', 'admin')", name="ck_profile_role"),
    )

    # Same value as the identity provider's user id
    id = Column(String(64), primary_key=True, index=True)

    role = Column(String(20), nullable=False, default=ROLE_APPLICANT, server_default=ROLE_APPLICANT)
    is_profile_complete = Column(Boolean, nullable=False, default=False, server_default=expression.false())

    display_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    dob = Column(Date, nullable=True)
    school = Column(String(200), nullable=True)
    phone_number = Column(String(20), nullable=True)
    pronouns = Column(String(50), nullable=True)
    country = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    application = relationship("Application", back_populates="owner", uselist=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __repr__(self):
        return f"<Profile id={self.id} role={self.role} complete={self.is_profile_complete}>"
