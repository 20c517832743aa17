"""
Shared application context handed to every channel source worker.
"""

import os
from dataclasses import dataclass, field
from typing import Dict

import requests


DEFAULT_USER_AGENT = 'ChannelSources/1.0'
DEFAULT_HTTP_TIMEOUT = 30
DEFAULT_STOP_TIMEOUT = 5


@dataclass
class AppContext:
    """HTTP settings and the session shared by all workers."""
    user_agent: str = DEFAULT_USER_AGENT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    stop_timeout: float = DEFAULT_STOP_TIMEOUT
    session: requests.Session = field(default_factory=requests.Session, repr=False)

    @classmethod
    def from_env(cls) -> 'AppContext':
        """Build the context from HTTP_USER_AGENT / HTTP_TIMEOUT."""
        return cls(
            user_agent=os.getenv('HTTP_USER_AGENT', DEFAULT_USER_AGENT),
            http_timeout=float(os.getenv('HTTP_TIMEOUT', str(DEFAULT_HTTP_TIMEOUT)))
        )

    def default_headers(self) -> Dict[str, str]:
        return {'User-Agent': self.user_agent}

    def close(self) -> None:
        self.session.close()
