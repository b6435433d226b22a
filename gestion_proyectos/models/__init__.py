"""SQLAlchemy models."""

from gestion_proyectos.models.comment import Comment
from gestion_proyectos.models.evidence import Evidence
from gestion_proyectos.models.evidence_norma_link import EvidenceNormaLink
from gestion_proyectos.models.norma import Norma, ProjectNorma, TaskNorma
from gestion_proyectos.models.norma_repo import NormaRepo
from gestion_proyectos.models.norma_repo_evidence import NormaRepoEvidence
from gestion_proyectos.models.phase import Phase
from gestion_proyectos.models.project import Project
from gestion_proyectos.models.task import Task
from gestion_proyectos.models.user import User

__all__ = [
    "Comment",
    "Evidence",
    "EvidenceNormaLink",
    "Norma",
    "NormaRepo",
    "NormaRepoEvidence",
    "Phase",
    "Project",
    "ProjectNorma",
    "Task",
    "TaskNorma",
    "User",
]
