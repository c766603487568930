from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


def get_logging_user_id(user: Any) -> str:
    """
    Return a consistent identifier for logging purposes.

    Args:
        user (Any): A Django user object (possibly anonymous) or a bare user id.

    Returns:
        user_id (str): User's ID or "anonymous" if unauthenticated or has no ID.
    """
    if isinstance(user, int):
        return str(user)

    if not getattr(user, "is_authenticated", False):
        return "anonymous"

    user_id = getattr(user, "id", None)
    if user_id is None:
        return "anonymous"

    return str(user_id)


def requests_retry_session(
    retries=3,
    backoff_factor=0.5,
    status_forcelist=(429, 500, 502, 503, 504),
    session=None,
):
    """
    Return a requests Session which retries idempotent requests on connection
    errors and on the listed HTTP status codes
    """
    session = session or requests.Session()
    retry = Retry(
        total=retries,
        read=retries,
        connect=retries,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
