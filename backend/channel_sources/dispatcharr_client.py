"""
Dispatcharr REST API client used by the API channel source.

Handles bearer-token login, a single re-login on 401 and paginated list
endpoints. All calls are blocking; the worker runs them in a thread.
"""

import threading
import time
from typing import Dict, List, Optional, Any

import requests

from logging_config import setup_logging, log_api_request, log_api_response

from channel_sources.context import AppContext
from channel_sources.exceptions import SourceFetchError
from dispatcharr_config import DispatcharrConfig, get_dispatcharr_config

logger = setup_logging(__name__)

DEFAULT_PAGE_SIZE = 100


class DispatcharrClient:
    """Fetches streams and channel groups from a Dispatcharr instance."""

    def __init__(self, app_context: AppContext, config: Optional[DispatcharrConfig] = None):
        self.app_context = app_context
        self.config = config or get_dispatcharr_config()
        self._token: Optional[str] = None
        self._token_lock = threading.Lock()

    @property
    def base_url(self) -> Optional[str]:
        return self.config.get_base_url()

    def _login(self) -> str:
        """Log in and return a fresh access token.

        Raises:
            SourceFetchError: If credentials are missing or login fails
        """
        if not self.config.is_configured():
            raise SourceFetchError(
                "DISPATCHARR_USER, DISPATCHARR_PASS, and DISPATCHARR_BASE_URL must be configured."
            )

        login_url = f"{self.base_url}/api/accounts/token/"
        logger.info(f"Logging in to {self.base_url}...")
        try:
            resp = self.app_context.session.post(
                login_url,
                headers={"Content-Type": "application/json", **self.app_context.default_headers()},
                json={"username": self.config.get_username(), "password": self.config.get_password()},
                timeout=self.app_context.http_timeout
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.RequestException as e:
            raise SourceFetchError(f"Login failed: {e}") from e
        except ValueError as e:
            raise SourceFetchError("Login failed: Invalid JSON response from server.") from e

        token = (data.get("access") or data.get("token")) if isinstance(data, dict) else None
        if not token:
            raise SourceFetchError("Login failed: No access token found in response.")

        logger.info("Login successful")
        return token

    def _auth_headers(self, force_login: bool = False) -> Dict[str, str]:
        with self._token_lock:
            if force_login or not self._token:
                self._token = self._login()
            token = self._token
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            **self.app_context.default_headers()
        }

    def _request(self, url: str, force_login: bool = False) -> requests.Response:
        start_time = time.time()
        log_api_request(logger, "GET", url)
        resp = self.app_context.session.get(
            url,
            headers=self._auth_headers(force_login),
            timeout=self.app_context.http_timeout
        )
        log_api_response(logger, "GET", url, resp.status_code, time.time() - start_time)
        return resp

    def _fetch_url(self, url: str) -> Any:
        """GET a URL as JSON, logging in again once on 401.

        Raises:
            SourceFetchError: On network errors, error statuses or invalid JSON
        """
        try:
            resp = self._request(url)
            if resp.status_code == 401:
                logger.info("Token expired or invalid, logging in again...")
                resp = self._request(url, force_login=True)
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.RequestException as e:
            raise SourceFetchError(f"Error fetching {url}: {e}") from e
        except ValueError as e:
            raise SourceFetchError(f"Invalid JSON from {url}") from e

    def _fetch_paginated(self, base_url: str, page_size: int = DEFAULT_PAGE_SIZE) -> List[Dict[str, Any]]:
        """Fetch every page of a list endpoint."""
        all_items: List[Dict[str, Any]] = []
        url = f"{base_url}?page_size={page_size}"

        while url:
            response = self._fetch_url(url)
            if isinstance(response, dict) and 'results' in response:
                all_items.extend(response.get('results') or [])
                url = response.get('next')
            else:
                if isinstance(response, list):
                    all_items.extend(response)
                break

        return all_items

    def _require_base_url(self) -> str:
        base_url = self.base_url
        if not base_url:
            raise SourceFetchError("DISPATCHARR_BASE_URL not set")
        return base_url

    def fetch_streams(self) -> List[Dict[str, Any]]:
        """Fetch all streams."""
        streams = self._fetch_paginated(f"{self._require_base_url()}/api/channels/streams/")
        logger.info(f"Fetched {len(streams)} streams")
        return streams

    def fetch_channel_groups(self) -> List[Dict[str, Any]]:
        """Fetch all channel groups."""
        groups = self._fetch_url(f"{self._require_base_url()}/api/channels/groups/")
        if isinstance(groups, dict):
            groups = groups.get('results') or []
        if not isinstance(groups, list):
            return []
        logger.debug(f"Fetched {len(groups)} channel groups")
        return groups
