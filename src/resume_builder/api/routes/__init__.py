"""Route handlers for the resume builder API."""

from resume_builder.api.routes import health, resumes, users

__all__ = ["health", "resumes", "users"]
