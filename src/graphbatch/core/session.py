"""
Session interface consumed by graph requests.

Token storage and OAuth flows live outside this package; requests only need
to read the access token and the application ID of an open session.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


class Session(ABC):
    """
    Abstract identity attached to a request.

    Implementations are owned by the caller; requests only keep a reference.
    """

    @property
    @abstractmethod
    def access_token(self) -> Optional[str]:
        """Access token sent with requests made on behalf of this session."""
        pass

    @property
    @abstractmethod
    def application_id(self) -> Optional[str]:
        """Application the access token was issued for."""
        pass


@dataclass(frozen=True)
class StaticSession(Session):
    """Session backed by a fixed token, e.g. one loaded from the environment."""

    token: Optional[str]
    app_id: Optional[str] = None

    @property
    def access_token(self) -> Optional[str]:
        return self.token

    @property
    def application_id(self) -> Optional[str]:
        return self.app_id

    def __repr__(self) -> str:
        # Never print the token itself
        return f"StaticSession(app_id={self.app_id!r})"
