"""
Shared module for common utilities used by the marketplace REST API and CLI.

STRUCTURE:
- marketplace_shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging, audit logger
  - constants.py: Roles, OrderStatus, transitions, tracking texts

- marketplace_shared.infrastructure: Database and request plumbing
  - db.py: SQLAlchemy sessions, safe_commit()
  - correlation.py: X-Request-ID middleware and logging filter

- marketplace_shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - validators.py: Input validation, money conversion
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from marketplace_shared.infrastructure.db import get_db, safe_commit
    from marketplace_shared.config.settings import settings
    from marketplace_shared.config.constants import Roles, OrderStatus
    from marketplace_shared.utils.exceptions import NotFoundError, ForbiddenError
    from marketplace_shared.utils.validators import to_decimal
"""
