"""
Data Models Layer.

This package contains the models that define the data exchanged with
Aura Helper CLI, such as the manager configuration, metadata trees and
operation results.
"""

from .config import ManagerConfig
from .metadata import MetadataItem, MetadataObject, MetadataType
from .results import (
    CLIProgress,
    CLIResponse,
    DependenciesCheckResponse,
    PackageGeneratorResult,
    RetrieveResult,
)

__all__ = [
    "CLIProgress",
    "CLIResponse",
    "DependenciesCheckResponse",
    "ManagerConfig",
    "MetadataItem",
    "MetadataObject",
    "MetadataType",
    "PackageGeneratorResult",
    "RetrieveResult",
]
