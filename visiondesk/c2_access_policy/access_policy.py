"""Who may see and change what.

Single-record predicates take the acting user and a record and return a
bool; callers turn ``False`` into an ``AuthorizationError`` with
:func:`ensure`. Collection scopes return a SQLAlchemy clause that list,
stats and analytics queries AND into their filters, so that collections are
narrowed silently instead of failing.

Admins pass every predicate and get an unrestricted scope.
"""

from sqlalchemy import or_, select, true

from visiondesk.c1_project_models.project import Project, ProjectTeamMember
from visiondesk.c1_role_enums import TeamRole, UserRole
from visiondesk.c1_task_models.task import Task
from visiondesk.c1_ticket_models.ticket import Ticket
from visiondesk.core.errors import AuthorizationError

VERIFY_SCOPE_GLOBAL = "global"
VERIFY_SCOPE_PROJECT = "project"


def ensure(allowed: bool, message: str = "Access denied"):
    """Raise ``AuthorizationError`` unless ``allowed``."""
    if not allowed:
        raise AuthorizationError(message)


def is_admin(actor) -> bool:
    return actor.role == UserRole.ADMIN.value


def is_moderator(actor) -> bool:
    return actor.role == UserRole.MODERATOR.value


def has_role(actor, *roles) -> bool:
    return actor.role in {getattr(role, "value", role) for role in roles}


# Projects


def is_project_creator(actor, project) -> bool:
    return project.created_by == actor.id


def is_project_member(actor, project) -> bool:
    return actor.id in project.member_ids()


def is_project_lead(actor, project) -> bool:
    return project.member_role(actor.id) == TeamRole.LEAD.value


def can_read_project(actor, project) -> bool:
    return is_admin(actor) or is_project_creator(actor, project) or is_project_member(actor, project)


def can_write_project(actor, project) -> bool:
    return is_admin(actor) or is_project_creator(actor, project)


def can_manage_team(actor, project) -> bool:
    return can_write_project(actor, project)


def can_delete_project(actor, project) -> bool:
    return can_write_project(actor, project)


def can_create_task_in(actor, project) -> bool:
    return can_read_project(actor, project)


def can_be_assigned(user, project) -> bool:
    """Whether ``user`` may hold tasks in ``project``."""
    return is_admin(user) or is_project_creator(user, project) or is_project_member(user, project)


# Tasks


def can_read_task(actor, task) -> bool:
    if is_admin(actor):
        return True
    if actor.id in (task.assigned_to, task.created_by):
        return True
    project = task.project
    return is_project_creator(actor, project) or is_project_member(actor, project)


def can_update_task(actor, task) -> bool:
    return can_read_task(actor, task)


def can_change_task_status(actor, task) -> bool:
    return (
        is_admin(actor)
        or actor.id in (task.assigned_to, task.created_by)
        or is_project_creator(actor, task.project)
    )


def can_reassign_task(actor, task) -> bool:
    return is_admin(actor) or is_moderator(actor) or is_project_creator(actor, task.project)


def can_delete_task(actor, task) -> bool:
    return is_admin(actor) or task.created_by == actor.id or is_project_creator(actor, task.project)


def can_comment_on_task(actor, task) -> bool:
    return can_read_task(actor, task)


# Tickets


def can_read_ticket(actor, ticket) -> bool:
    return is_admin(actor) or ticket.resolved_by == actor.id or can_read_task(actor, ticket.task)


def can_resolve_task(actor, task) -> bool:
    return can_read_task(actor, task)


def can_update_ticket(actor, ticket) -> bool:
    if is_admin(actor) or ticket.resolved_by == actor.id:
        return True
    if is_project_creator(actor, ticket.task.project):
        return True
    return is_moderator(actor) and can_read_ticket(actor, ticket)


def can_delete_ticket(actor, ticket) -> bool:
    return is_admin(actor) or ticket.resolved_by == actor.id or is_project_creator(actor, ticket.task.project)


def can_verify_ticket(actor, ticket, verify_scope: str = VERIFY_SCOPE_GLOBAL) -> bool:
    if is_admin(actor):
        return True
    project = ticket.task.project
    if is_project_creator(actor, project) or is_project_lead(actor, project):
        return True
    if is_moderator(actor):
        return verify_scope == VERIFY_SCOPE_GLOBAL or can_read_ticket(actor, ticket)
    return False


def can_close_ticket(actor, ticket, verify_scope: str = VERIFY_SCOPE_GLOBAL) -> bool:
    return can_verify_ticket(actor, ticket, verify_scope)


# Users


def can_view_user(actor, user) -> bool:
    return actor.id == user.id or is_admin(actor) or is_moderator(actor)


def can_edit_user(actor, user) -> bool:
    return actor.id == user.id or is_admin(actor)


def can_change_role(actor) -> bool:
    return is_admin(actor)


# Collection scopes


def visible_project_ids(actor):
    """Subquery of ids of projects the actor created or joined."""
    member_of = select(ProjectTeamMember.project_id).where(ProjectTeamMember.user_id == actor.id)
    return select(Project.id).where(or_(Project.created_by == actor.id, Project.id.in_(member_of)))


def project_scope(actor):
    if is_admin(actor):
        return true()
    member_of = select(ProjectTeamMember.project_id).where(ProjectTeamMember.user_id == actor.id)
    return or_(Project.created_by == actor.id, Project.id.in_(member_of))


def task_scope(actor):
    if is_admin(actor):
        return true()
    if is_moderator(actor):
        return Task.project_id.in_(visible_project_ids(actor))
    return Task.assigned_to == actor.id


def ticket_scope(actor):
    if is_admin(actor):
        return true()
    if is_moderator(actor):
        visible_tasks = select(Task.id).where(Task.project_id.in_(visible_project_ids(actor)))
        return Ticket.task_id.in_(visible_tasks)
    return Ticket.resolved_by == actor.id
