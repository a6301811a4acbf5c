import logging
from functools import wraps
from flask_jwt_extended import verify_jwt_in_request
from branch_ledger.errors import Forbidden
from branch_ledger.services.policy import current_actor, current_permissions

logger = logging.getLogger(__name__)


def require_permissions(*codes: str):
    """Verify the JWT and require every listed permission code.

    Admins pass regardless of their ``perms`` claim. A denial is a ``Forbidden``
    ledger error naming the missing codes.
    """
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            actor = current_actor()
            if not actor.is_admin:
                missing = [c for c in codes if c not in current_permissions()]
                if missing:
                    logger.info('Permission denied for %s on %s: missing %s', actor.id, fn.__name__, ', '.join(missing))
                    raise Forbidden(f"Missing permission: {', '.join(missing)}")
            return fn(*args, **kwargs)
        return wrapper
    return outer
