"""Identity and session handling for coprodesk.

The identity provider owns credentials and tokens; user profiles (role,
building, active flag) live in the user repository. A SessionContext ties
the two together for one client.
"""

from coprodesk.auth.models import AuthCredentials, AuthResult, TokenValidation, User
from coprodesk.auth.provider import AuthProvider, MockAuthProvider

__all__ = [
    "AuthCredentials",
    "AuthProvider",
    "AuthResult",
    "MockAuthProvider",
    "TokenValidation",
    "User",
]
