# app/models/application.py
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, JSON, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
import uuid

from app.database import Base


class ApplicationStatus(str, enum.Enum):
    DRAFT = "Draft"
    UNDER_REVIEW = "Under Review"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        CheckConstraint(
            "status IN ('Draft', 'Under Review', 'Accepted', 'Rejected')",
            name="ck_applications_status",
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # One application per profile
    user_id = Column(String(64), ForeignKey("profile.id"), nullable=False, unique=True, index=True)

    # SECTION A: Basic Info
    phone_number = Column(String(30), nullable=True)
    address = Column(Text, nullable=True)
    citizenship = Column(String(100), nullable=True)

    # SECTION B: Education
    is_student = Column(Boolean, nullable=True)
    school = Column(String(200), nullable=True)
    study_level = Column(String(50), nullable=True)
    graduation_year = Column(Integer, nullable=True)
    major = Column(String(100), nullable=True)

    # SECTION C: Experience
    attended_mlh = Column(Boolean, nullable=True)
    technical_skills = Column(JSON, nullable=True)
    programming_languages = Column(JSON, nullable=True)
    hackathon_experience = Column(Boolean, nullable=True)
    hackathon_experience_desc = Column(Text, nullable=True)

    # SECTION D: Team & Goals
    has_team = Column(Boolean, nullable=True)
    needs_teammates = Column(Boolean, nullable=True)
    desired_teammate_skills = Column(Text, nullable=True)
    goals = Column(Text, nullable=True)
    heard_from = Column(String(200), nullable=True)

    # SECTION E: Support Needs
    needs_sponsorship = Column(Boolean, nullable=True)
    accessibility_needs = Column(Boolean, nullable=True)
    accessibility_desc = Column(Text, nullable=True)
    dietary_restrictions = Column(Boolean, nullable=True)
    dietary_desc = Column(Text, nullable=True)

    # SECTION F: Emergency Contact
    emergency_contact_name = Column(String(100), nullable=True)
    emergency_contact_phone = Column(String(30), nullable=True)
    emergency_contact_relation = Column(String(50), nullable=True)

    # SECTION G: Demographics
    tshirt_size = Column(String(10), nullable=True)
    ethnicity = Column(JSON, nullable=True)
    underrepresented = Column(Boolean, nullable=True)

    # SECTION H: Agreements
    mlh_code_of_conduct = Column(Boolean, nullable=False, default=False)
    mlh_data_sharing = Column(Boolean, nullable=False, default=False)
    mlh_communications = Column(Boolean, nullable=False, default=False)
    info_accurate = Column(Boolean, nullable=False, default=False)
    understands_admission = Column(Boolean, nullable=False, default=False)

    # SECTION I: Lifecycle
    status = Column(String(20), nullable=False, default=ApplicationStatus.DRAFT.value, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    owner = relationship("Profile", back_populates="application")

    def __repr__(self):
        return f"<Application id={self.id} user_id={self.user_id} status={self.status}>"
