import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base: Any = declarative_base()
metadata = Base.metadata


def _uuid() -> str:
    return str(uuid.uuid4())


class RoleModel(Base):
    __tablename__ = "roles"
    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    # system roles are protected from deletion
    is_system = Column(Boolean, nullable=False, default=False)
    # role handed to new users created without an explicit role
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_roles_deleted_at", "deleted_at"),
        Index("idx_roles_name", "name"),
    )


class PermissionModel(Base):
    __tablename__ = "permissions"
    id = Column(String(36), primary_key=True, default=_uuid)
    # "resource:action", "resource:*" or "*"
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    # display grouping only; matching uses name
    resource = Column(String, nullable=False)
    action = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class UserModel(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    image = Column(String, nullable=True)
    role_id = Column(String(36), ForeignKey("roles.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    role = relationship("RoleModel")

    __table_args__ = (
        Index("idx_users_role_id", "role_id"),
        Index("idx_users_deleted_at", "deleted_at"),
    )


role_permissions = Table(
    "role_permissions",
    metadata,
    Column("role_id", String(36), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id",
        String(36),
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("assigned_at", DateTime, nullable=False, default=datetime.utcnow),
    Column("assigned_by", String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    Index("idx_role_permissions_permission_id", "permission_id"),
)

# direct grants that supplement a user's role
user_permissions = Table(
    "user_permissions",
    metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id",
        String(36),
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("assigned_at", DateTime, nullable=False, default=datetime.utcnow),
    Column("assigned_by", String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    Index("idx_user_permissions_permission_id", "permission_id"),
)


class TeamModel(Base):
    __tablename__ = "teams"
    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (Index("idx_teams_deleted_at", "deleted_at"),)


team_members = Table(
    "team_members",
    metadata,
    Column("team_id", String(36), ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime, nullable=False, default=datetime.utcnow),
    Index("idx_team_members_user_id", "user_id"),
)


class InvitationModel(Base):
    __tablename__ = "invitations"
    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    email = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role_id = Column(String(36), ForeignKey("roles.id"), nullable=False)
    token = Column(String(255), nullable=False, unique=True)
    # pending, accepted, cancelled, expired
    status = Column(String(20), nullable=False, default="pending")
    expires_at = Column(DateTime, nullable=False)
    invited_by_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    accepted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_invitations_email", "email"),
        Index("idx_invitations_status", "status"),
        Index("idx_invitations_user_status", "user_id", "status"),
    )
