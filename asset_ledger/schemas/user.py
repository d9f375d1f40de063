from typing import Optional

from pydantic import BaseModel


class UserInput(BaseModel):
    """Account fields editable from the user administration screen.

    Passwords are not accepted; sign-in is handled outside the ledger.
    """

    username: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class UserFilter(BaseModel):
    search: Optional[str] = None
    role: Optional[str] = None
