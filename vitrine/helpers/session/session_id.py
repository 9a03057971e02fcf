import secrets
import string
import time

SESSION_HEADER = "X-Session-Id"

_BASE36 = string.digits + string.ascii_lowercase


def generate_session_id() -> str:
    """Identificador opaco de sessão de visitante: session-<ms>-<9 base36>."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"session-{int(time.time() * 1000)}-{suffix}"
