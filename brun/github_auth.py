"""GitHub token lookup.

The token is read once at startup from the environment and handed to the
remote by value. Resolution order:

1. GH_TOKEN
2. GITHUB_TOKEN
"""

import os
from typing import Mapping, Optional

from brun.errors import MissingToken

TOKEN_ENV_VARS = ("GH_TOKEN", "GITHUB_TOKEN")


def get_gh_token(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the first non-empty token from the environment.

    Raises:
        MissingToken: If neither variable holds a token.
    """
    if environ is None:
        environ = os.environ
    for name in TOKEN_ENV_VARS:
        token = environ.get(name, "").strip()
        if token:
            return token
    raise MissingToken()
