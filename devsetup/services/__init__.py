"""Application services: provisioning run, profile publishing, verification."""

from devsetup.services.provision import CATEGORY_ORDER, ProvisioningOrchestrator, RunReport
from devsetup.services.publish import EnvironmentPublisher, PublishReport
from devsetup.services.verify import CheckResult, CheckStatus, VerificationReporter

__all__ = [
    "CATEGORY_ORDER",
    "ProvisioningOrchestrator",
    "RunReport",
    "EnvironmentPublisher",
    "PublishReport",
    "CheckResult",
    "CheckStatus",
    "VerificationReporter",
]
