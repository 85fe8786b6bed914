"""Authentication-related Pydantic schemas."""

from pydantic import BaseModel

from soloflow.db.enums import AuthProvider


class Identity(BaseModel):
    """
    The signed-in person as asserted by the identity provider.

    Carried in the session cookie. It exists before (and independently of)
    any row in the users table; pages resolve it to a User on each request.
    """
    provider: AuthProvider = AuthProvider.GOOGLE
    subject: str  # Provider's unique user identifier
    email: str  # Normalized to lowercase
    name: str = ""
    first_name: str | None = None
    last_name: str | None = None
    picture: str | None = None
