"""
Access rules for applications.

Students see and edit only their own application. Reviewers are admins, or
program admins for the programs they administer.
"""

import logging

from admissions.core.auth import CurrentUser, Permission
from admissions.modules.applications.exceptions import ApplicationAccessDeniedError
from admissions.modules.applications.models import Application

logger = logging.getLogger(__name__)


def is_owner(user: CurrentUser, application: Application) -> bool:
    return application.user_id == user.id


def administers_program(user: CurrentUser, application: Application) -> bool:
    """True for admins, and for the program admin of the application's program."""
    if user.is_admin:
        return True
    if not user.is_program_admin:
        return False
    program = application.program
    return program is not None and program.program_admin_id == user.id


def ensure_owner(user: CurrentUser, application: Application) -> None:
    if not is_owner(user, application):
        logger.warning(f"{user} denied access to application {application.id} (not the owner)")
        raise ApplicationAccessDeniedError()


def ensure_can_view(user: CurrentUser, application: Application) -> None:
    """Owner with view_own_application, or a reviewer with view_applications for its program."""
    if is_owner(user, application) and user.can(Permission.VIEW_OWN_APPLICATION):
        return
    if user.can(Permission.VIEW_APPLICATIONS) and administers_program(user, application):
        return
    logger.warning(f"{user} denied view access to application {application.id}")
    raise ApplicationAccessDeniedError()


def ensure_can_review(user: CurrentUser, application: Application) -> None:
    """Reviewer with manage_applications for the application's program."""
    if user.can(Permission.MANAGE_APPLICATIONS) and administers_program(user, application):
        return
    logger.warning(f"{user} denied review access to application {application.id}")
    raise ApplicationAccessDeniedError(
        "You are not allowed to review applications for this program."
    )
