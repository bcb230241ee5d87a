# tests/factories.py
import time
from datetime import date, datetime, timezone

from jose import jwt

from app.auth.identity import Identity
from app.models.application import Application, ApplicationStatus
from app.models.profile import Profile, ROLE_APPLICANT

TEST_SECRET = "test-secret-key-for-portal-tests"


def make_token(user_id, email=None, verified=True, expires_in=3600, secret=TEST_SECRET, **extra):
    now = int(time.time())
    claims = {
        "sub": user_id,
        "email": email or f"{user_id}@example.com",
        "aud": "authenticated",
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    if verified:
        claims["email_confirmed_at"] = "2026-01-01T00:00:00Z"
    claims.update(extra)
    return jwt.encode(claims, secret, algorithm="HS256")


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def make_identity(user_id="user-1", email=None, verified=True, **metadata):
    return Identity(
        id=user_id,
        email=email or f"{user_id}@example.com",
        email_verified=verified,
        user_metadata=metadata,
    )


def adult_dob(years=20):
    return date(date.today().year - years, 1, 1)


def make_profile(db, user_id, role=ROLE_APPLICANT, complete=True, **fields):
    values = dict(
        display_name=f"User {user_id}",
        email=f"{user_id}@example.com",
        school="State University",
        dob=adult_dob(),
    )
    values.update(fields)
    profile = Profile(id=user_id, role=role, is_profile_complete=complete, **values)
    db.add(profile)
    db.commit()
    return profile


def make_application(db, user_id, status=ApplicationStatus.UNDER_REVIEW, **fields):
    now = datetime.now(timezone.utc)
    application = Application(
        user_id=user_id,
        status=ApplicationStatus(status).value,
        submitted_at=None if status == ApplicationStatus.DRAFT else now,
        updated_at=now,
        **fields,
    )
    db.add(application)
    db.commit()
    return application


def valid_application(**overrides):
    values = {
        "phone_number": "5551234567",
        "address": "1 Campus Way",
        "citizenship": "Canada",
        "is_student": True,
        "school": "State University",
        "study_level": "Undergraduate",
        "graduation_year": date.today().year + 2,
        "major": "Computer Science",
        "attended_mlh": False,
        "technical_skills": ["Web"],
        "programming_languages": ["Python"],
        "hackathon_experience": False,
        "has_team": False,
        "needs_teammates": True,
        "goals": "Build something fun",
        "heard_from": "Friend",
        "needs_sponsorship": False,
        "accessibility_needs": False,
        "dietary_restrictions": False,
        "emergency_contact_name": "Pat Doe",
        "emergency_contact_phone": "5559876543",
        "emergency_contact_relation": "Parent",
        "tshirt_size": "M",
        "ethnicity": [],
        "underrepresented": False,
        "mlh_code_of_conduct": True,
        "mlh_data_sharing": True,
        "mlh_communications": False,
        "info_accurate": True,
        "understands_admission": True,
    }
    values.update(overrides)
    return values
