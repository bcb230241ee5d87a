"""Create profile and applications tables

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 10:12:44.118532

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'profile',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='applicant'),
        sa.Column('is_profile_complete', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('dob', sa.Date(), nullable=True),
        sa.Column('school', sa.String(length=200), nullable=True),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('pronouns', sa.String(length=50), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('applicant', 'admin')", name='ck_profile_role'),
    )
    op.create_index('ix_profile_id', 'profile', ['id'])

    op.create_table(
        'applications',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=64), sa.ForeignKey('profile.id'), nullable=False),

        sa.Column('phone_number', sa.String(length=30), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('citizenship', sa.String(length=100), nullable=True),

        sa.Column('is_student', sa.Boolean(), nullable=True),
        sa.Column('school', sa.String(length=200), nullable=True),
        sa.Column('study_level', sa.String(length=50), nullable=True),
        sa.Column('graduation_year', sa.Integer(), nullable=True),
        sa.Column('major', sa.String(length=100), nullable=True),

        sa.Column('attended_mlh', sa.Boolean(), nullable=True),
        sa.Column('technical_skills', sa.JSON(), nullable=True),
        sa.Column('programming_languages', sa.JSON(), nullable=True),
        sa.Column('hackathon_experience', sa.Boolean(), nullable=True),
        sa.Column('hackathon_experience_desc', sa.Text(), nullable=True),

        sa.Column('has_team', sa.Boolean(), nullable=True),
        sa.Column('needs_teammates', sa.Boolean(), nullable=True),
        sa.Column('desired_teammate_skills', sa.Text(), nullable=True),
        sa.Column('goals', sa.Text(), nullable=True),
        sa.Column('heard_from', sa.String(length=200), nullable=True),

        sa.Column('needs_sponsorship', sa.Boolean(), nullable=True),
        sa.Column('accessibility_needs', sa.Boolean(), nullable=True),
        sa.Column('accessibility_desc', sa.Text(), nullable=True),
        sa.Column('dietary_restrictions', sa.Boolean(), nullable=True),
        sa.Column('dietary_desc', sa.Text(), nullable=True),

        sa.Column('emergency_contact_name', sa.String(length=100), nullable=True),
        sa.Column('emergency_contact_phone', sa.String(length=30), nullable=True),
        sa.Column('emergency_contact_relation', sa.String(length=50), nullable=True),

        sa.Column('tshirt_size', sa.String(length=10), nullable=True),
        sa.Column('ethnicity', sa.JSON(), nullable=True),
        sa.Column('underrepresented', sa.Boolean(), nullable=True),

        sa.Column('mlh_code_of_conduct', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('mlh_data_sharing', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('mlh_communications', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('info_accurate', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('understands_admission', sa.Boolean(), nullable=False, server_default=sa.false()),

        sa.Column('status', sa.String(length=20), nullable=False, server_default='Draft'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('Draft', 'Under Review', 'Accepted', 'Rejected')",
            name='ck_applications_status'
        ),
    )
    # One application per owner; the submit upsert depends on this constraint
    op.create_index('ix_applications_user_id', 'applications', ['user_id'], unique=True)
    op.create_index('ix_applications_status', 'applications', ['status'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_applications_status', table_name='applications')
    op.drop_index('ix_applications_user_id', table_name='applications')
    op.drop_table('applications')
    op.drop_index('ix_profile_id', table_name='profile')
    op.drop_table('profile')
