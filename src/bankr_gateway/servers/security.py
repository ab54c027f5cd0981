import hmac
import secrets
import string
from pathlib import Path
from typing import Optional

import dotenv

from ..engine.exceptions import UnauthorizedError

#: Header carrying the shared secret.
PROXY_TOKEN_HEADER = "x-proxy-token"


def create_proxy_token(*, prefix: str = "", length: int = 32) -> str:
    """
    Generate a shared secret for the ``x-proxy-token`` header.

    Args:
        prefix: Readable marker prepended to the random part (e.g. "bgw_").
        length: Number of random alphanumeric characters.

    Returns:
        A header-safe random token.
    """
    alphabet = string.ascii_letters + string.digits
    return prefix + "".join(secrets.choice(alphabet) for _ in range(length))


def save_key_to_env(key_name: str, key_value: str, env_file: str = ".env") -> None:
    """
    Write ``key_name=key_value`` into a .env file, replacing an existing entry.

    The file is created when missing; other entries are left untouched.
    """
    path = Path(env_file)
    path.touch(exist_ok=True)
    dotenv.set_key(str(path), key_name, key_value, quote_mode="never")


def verify_proxy_token(
    *,
    provided: Optional[str],
    expected: Optional[str],
) -> None:
    """
    Check the caller's shared secret.

    No-op when no secret is configured.

    Args:
        provided: Value of the ``x-proxy-token`` header, if any.
        expected: Configured secret, or None when the check is disabled.

    Raises:
        UnauthorizedError: If a secret is configured and the header is missing or different.
    """
    if not expected:
        return

    if not provided:
        raise UnauthorizedError(f"Missing {PROXY_TOKEN_HEADER} header")

    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise UnauthorizedError(f"Invalid {PROXY_TOKEN_HEADER} header")
