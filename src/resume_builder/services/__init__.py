"""Services"""

from resume_builder.services.accounts import (
    authenticate,
    create_pwd_recovery,
    get_user,
    get_user_by_email,
    register,
    reset_password,
    update_user,
)
from resume_builder.services.reconcile import mark_for_deletion, reconcile
from resume_builder.services.resumes import (
    create_resume,
    delete_resume,
    get_resume,
    get_resume_by,
    list_resumes,
    update_resume,
)

__all__ = [
    "authenticate",
    "create_pwd_recovery",
    "create_resume",
    "delete_resume",
    "get_resume",
    "get_resume_by",
    "get_user",
    "get_user_by_email",
    "list_resumes",
    "mark_for_deletion",
    "reconcile",
    "register",
    "reset_password",
    "update_resume",
    "update_user",
]
