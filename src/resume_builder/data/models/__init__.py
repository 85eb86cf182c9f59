"""ORM models package for database tables.

This package provides SQLAlchemy ORM models representing database tables:
- User / PasswordRecovery: accounts and password recovery requests
- Resume: the aggregate root owning every resume section
- PersonalInfo, Experience, Education, Skill: resume sections
- SpokenLanguage, SupplementarySkill: rated entries

All models inherit from the shared Base declarative class defined in data.db.
"""

from resume_builder.data.db import Base
from resume_builder.data.models.education import Education
from resume_builder.data.models.experience import Experience
from resume_builder.data.models.password_recovery import PasswordRecovery
from resume_builder.data.models.personal_info import PersonalInfo
from resume_builder.data.models.ratable import SpokenLanguage, SupplementarySkill
from resume_builder.data.models.resume import Resume
from resume_builder.data.models.skill import Skill
from resume_builder.data.models.user import User

__all__ = [
    "Base",
    "Education",
    "Experience",
    "PasswordRecovery",
    "PersonalInfo",
    "Resume",
    "Skill",
    "SpokenLanguage",
    "SupplementarySkill",
    "User",
]
