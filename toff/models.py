"""Import every ORM module so SQLAlchemy can resolve cross-module relationships."""

from toff.auth.models import UserSession  # noqa: F401
from toff.balance.models import TimeOffBalance  # noqa: F401
from toff.common.audit import AuditLog  # noqa: F401
from toff.overtime.models import OvertimeRequest  # noqa: F401
from toff.time_off.models import TimeOffRequest  # noqa: F401
from toff.users.models import User  # noqa: F401
