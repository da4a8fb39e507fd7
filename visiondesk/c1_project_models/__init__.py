"""Project models for VisionDesk."""

from visiondesk.c1_project_models.project import Project, ProjectTeamMember

__all__ = ["Project", "ProjectTeamMember"]
