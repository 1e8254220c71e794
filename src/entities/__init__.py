from src.entities.landing import Landing
from src.entities.version import Version
from src.entities.version_counter import VersionCounter
from src.entities.audit_log import AuditLog

__all__ = ["Landing", "Version", "VersionCounter", "AuditLog"]
