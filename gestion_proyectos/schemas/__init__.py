"""Pydantic schemas for request/response validation."""

from gestion_proyectos.schemas.auth import LoginRequest, TokenResponse, UserRead
from gestion_proyectos.schemas.evidence import (
    EvidenceGroupList,
    EvidenceGroupRead,
    EvidencePage,
    EvidenceRead,
    EvidenceUpdate,
    LinkedNormaList,
    LinkedNormaRead,
    NormaLinkRequest,
)
from gestion_proyectos.schemas.norma import NormaAttachRequest, NormaPage, NormaRead, OkResponse
from gestion_proyectos.schemas.norma_repo import (
    ImportResponse,
    NormaRepoCreate,
    NormaRepoPage,
    NormaRepoRead,
    NormaRepoUpdate,
    ReferenceImageList,
    ReferenceImageRead,
)
from gestion_proyectos.schemas.project import (
    PhaseRead,
    PhaseUpdate,
    ProjectCreate,
    ProjectList,
    ProjectRead,
    ProjectUpdate,
)
from gestion_proyectos.schemas.task import (
    CommentCreate,
    CommentRead,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)

__all__ = [
    "CommentCreate",
    "CommentRead",
    "EvidenceGroupList",
    "EvidenceGroupRead",
    "EvidencePage",
    "EvidenceRead",
    "EvidenceUpdate",
    "ImportResponse",
    "LinkedNormaList",
    "LinkedNormaRead",
    "LoginRequest",
    "NormaAttachRequest",
    "NormaLinkRequest",
    "NormaPage",
    "NormaRead",
    "NormaRepoCreate",
    "NormaRepoPage",
    "NormaRepoRead",
    "NormaRepoUpdate",
    "OkResponse",
    "PhaseRead",
    "PhaseUpdate",
    "ProjectCreate",
    "ProjectList",
    "ProjectRead",
    "ProjectUpdate",
    "ReferenceImageList",
    "ReferenceImageRead",
    "TaskCreate",
    "TaskRead",
    "TaskUpdate",
    "TokenResponse",
    "UserRead",
]
