from hiretrack.models.tenant import Tenant, User
from hiretrack.models.job import Job
from hiretrack.models.candidate import Candidate
from hiretrack.models.activity import StatusChange, Notification
from hiretrack.models.tracking import JobView, FunnelRecord

__all__ = ["Tenant", "User", "Job", "Candidate", "StatusChange", "Notification", "JobView", "FunnelRecord"]
