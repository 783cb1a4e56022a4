"""Tool provisioning infrastructure.

This package provides:
- HTTP transport and artifact fetching (http.py, download.py)
- Archive extraction over several backends (extract.py)
- Entry-point publishing into tools/bin (links.py)
- Installer base class and per-tool installers (base.py, installers/)
- Pinned tool catalog and per-category plans (catalog.py)
"""

from devsetup.tools.base import (
    Category,
    InstallContext,
    InstallStatus,
    InstallationProbe,
    MarkerProbe,
    ProvisioningResult,
    ToolInstaller,
)
from devsetup.tools.catalog import PLAN_BUILDERS, CategoryPlan, ToolCatalog
from devsetup.tools.download import ArchiveFetcher
from devsetup.tools.extract import ArchiveExtractor, find_file, find_root
from devsetup.tools.http import HttpClient, HttpError, MockHttpClient, RealHttpClient
from devsetup.tools.links import EntryPointLinker

__all__ = [
    # Base types
    "Category",
    "InstallContext",
    "InstallStatus",
    "InstallationProbe",
    "MarkerProbe",
    "ProvisioningResult",
    "ToolInstaller",
    # Catalog
    "PLAN_BUILDERS",
    "CategoryPlan",
    "ToolCatalog",
    # HTTP
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    # Fetch / extract / link
    "ArchiveFetcher",
    "ArchiveExtractor",
    "EntryPointLinker",
    "find_file",
    "find_root",
]
