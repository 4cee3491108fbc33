"""Secrets loaded from the process environment.

The hosted auth service needs an organization secret and an application id.
They are read on every call so that a rotated secret is picked up without a
restart, and a missing one is reported per request instead of at import time.
"""
import os
from typing import Dict, Optional

SECRET_VARIABLES = ('CAVOS_ORG_SECRET', 'CAVOS_APP_ID')

def load_env_secrets() -> Dict[str, Optional[str]]:
    """Return the hosted service secrets, None for the unset ones"""
    return {name: os.environ.get(name) or None for name in SECRET_VARIABLES}
