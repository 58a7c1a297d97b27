"""Database model exports."""

from .user import User
from .casbin import CasbinRule
from .audit import AuditAction, AuditLog
from .catalog import Application, CaseType, Category, Status, TestType
from .tracking import (
    Case,
    CaseAttachment,
    CaseProgress,
    Test,
    TestAttachment,
    TestProgress,
)
from .solution import Solution, SolutionAttachment, SolutionTest
from .resource import ResourceFolder, ResourceType, SharePermission, SolutionResource

__all__ = [
    "User",
    "CasbinRule",
    "AuditAction",
    "AuditLog",
    "Application",
    "Category",
    "CaseType",
    "TestType",
    "Status",
    "Case",
    "CaseProgress",
    "CaseAttachment",
    "Test",
    "TestProgress",
    "TestAttachment",
    "Solution",
    "SolutionTest",
    "SolutionAttachment",
    "SolutionResource",
    "ResourceFolder",
    "ResourceType",
    "SharePermission",
]
