"""Gmail API client implementation.

This module provides a client for interacting with the Gmail API.

Notes:
    The Google API client is synchronous. This project wraps those calls using
    `asyncio.to_thread` so the rest of the codebase can remain async-friendly.
    httplib2 connections are not thread-safe, so every request executes on its
    own authorized Http object.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import httplib2
import structlog

from emailmaster.config import Settings
from emailmaster.exceptions import AuthenticationError, ConfigurationError, GmailAPIError
from emailmaster.utils import retry_on_failure

logger = structlog.get_logger()


_USER_ID = "me"
_TRANSIENT_ERRORS = (OSError, httplib2.HttpLib2Error)


class GmailClient:
    """Gmail API client for email operations.

    This client handles authentication, message retrieval,
    and sending replies or drafts.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize Gmail client.

        Args:
            settings: Application settings. If None, uses default settings.
        """
        from emailmaster.config import get_settings

        self.settings = settings or get_settings()
        self._service: Any | None = None
        self._credentials: Any | None = None
        logger.info("gmail_client_initialized")

    async def authenticate(self) -> None:
        """Authenticate with Gmail API using OAuth2.

        Raises:
            ConfigurationError: If the OAuth client secrets file is missing.
            AuthenticationError: If authentication fails.
        """

        if self._service is not None:
            return

        credentials_path = Path(self.settings.gmail_credentials_path)
        token_path = Path(self.settings.gmail_token_path)
        scopes = list(self.settings.gmail_scopes)

        if not credentials_path.exists():
            raise ConfigurationError(
                f"Gmail credentials file not found: {credentials_path}. "
                "Download an OAuth client secrets file from Google Cloud Console."
            )

        logger.info(
            "gmail_authentication_started",
            credentials_path=str(credentials_path),
            token_path=str(token_path),
            scopes=scopes,
        )

        try:
            self._credentials, self._service = await asyncio.to_thread(
                self._build_service,
                credentials_path,
                token_path,
                scopes,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_authentication_failed", error=str(exc))
            raise AuthenticationError(str(exc)) from exc

        logger.info("gmail_authentication_completed")

    async def list_messages(
        self,
        max_results: int | None = None,
        query: str | None = None,
    ) -> list[dict[str, Any]]:
        """List messages from Gmail.

        Args:
            max_results: Maximum number of messages to return.
            query: Gmail search query string.

        Returns:
            List of ``{"id", "threadId"}`` dictionaries, newest first.

        Raises:
            GmailAPIError: If the API request fails.
        """

        await self._ensure_authenticated()

        logger.info("listing_messages", max_results=max_results or "all", query=query)

        try:
            return await asyncio.to_thread(self._list_messages_sync, max_results, query)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_list_messages_failed", error=str(exc))
            raise GmailAPIError(str(exc)) from exc

    async def get_message(
        self,
        message_id: str,
        *,
        format: str = "full",
        metadata_headers: list[str] | None = None,
    ) -> dict[str, Any]:
        """Get a specific message by ID.

        Args:
            message_id: The Gmail message ID.
            format: Gmail response format (full, metadata, minimal, raw).
            metadata_headers: Headers to include when format is metadata.

        Returns:
            Message data dictionary.

        Raises:
            GmailAPIError: If the API request fails.
        """

        await self._ensure_authenticated()

        logger.debug("getting_message", message_id=message_id, format=format)

        try:
            return await asyncio.to_thread(
                self._get_message_sync,
                message_id,
                format,
                metadata_headers,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("gmail_get_message_failed", message_id=message_id, error=str(exc))
            raise GmailAPIError(str(exc)) from exc

    async def send_message(self, raw: str, thread_id: str | None = None) -> dict[str, Any]:
        """Send a base64url-encoded RFC 2822 message.

        Raises:
            GmailAPIError: If the API request fails.
        """

        await self._ensure_authenticated()

        body: dict[str, Any] = {"raw": raw}
        if thread_id:
            body["threadId"] = thread_id

        logger.info("sending_message", thread_id=thread_id)
        try:
            return await asyncio.to_thread(self._send_message_sync, body)
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_send_message_failed", error=str(exc))
            raise GmailAPIError(str(exc)) from exc

    async def create_draft(self, raw: str, thread_id: str | None = None) -> dict[str, Any]:
        """Save a base64url-encoded RFC 2822 message as a draft.

        Raises:
            GmailAPIError: If the API request fails.
        """

        await self._ensure_authenticated()

        message: dict[str, Any] = {"raw": raw}
        if thread_id:
            message["threadId"] = thread_id

        logger.info("creating_draft", thread_id=thread_id)
        try:
            return await asyncio.to_thread(self._create_draft_sync, {"message": message})
        except Exception as exc:  # noqa: BLE001
            logger.exception("gmail_create_draft_failed", error=str(exc))
            raise GmailAPIError(str(exc)) from exc

    async def _ensure_authenticated(self) -> None:
        if self._service is None:
            raise AuthenticationError(
                "Gmail client is not authenticated. Call await GmailClient.authenticate() first."
            )

    def _build_service(
        self, credentials_path: Path, token_path: Path, scopes: list[str]
    ) -> tuple[Any, Any]:
        # Imported lazily to keep import-time cost low and tests fast.
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials
        from google_auth_oauthlib.flow import InstalledAppFlow
        from googleapiclient.discovery import build

        creds: Credentials | None = None
        if token_path.exists():
            creds = Credentials.from_authorized_user_file(str(token_path), scopes=scopes)

        if creds is not None and creds.expired and creds.refresh_token:
            creds.refresh(Request())
            token_path.write_text(creds.to_json(), encoding="utf-8")

        if creds is None or not creds.valid:
            flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), scopes=scopes)
            creds = flow.run_local_server(port=0)
            token_path.parent.mkdir(parents=True, exist_ok=True)
            token_path.write_text(creds.to_json(), encoding="utf-8")

        # cache_discovery=False prevents writing discovery docs to disk.
        return creds, build("gmail", "v1", credentials=creds, cache_discovery=False)

    def _execute(self, request: Any) -> Any:
        from google_auth_httplib2 import AuthorizedHttp

        @retry_on_failure(max_retries=self.settings.max_retries, retry_on=_TRANSIENT_ERRORS)
        def run() -> Any:
            http = AuthorizedHttp(self._credentials, http=httplib2.Http())
            return request.execute(http=http)

        return run()

    def _list_messages_sync(self, max_results: int | None, query: str | None) -> list[dict[str, Any]]:
        assert self._service is not None
        messages: list[dict[str, Any]] = []

        page_token: str | None = None
        while True:
            if max_results is not None and len(messages) >= max_results:
                break

            remaining = None if max_results is None else max_results - len(messages)
            per_page = 500 if remaining is None else min(500, remaining)

            request = (
                self._service.users()
                .messages()
                .list(userId=_USER_ID, maxResults=per_page, q=query, pageToken=page_token)
            )
            response = self._execute(request)
            messages.extend(response.get("messages", []) or [])
            page_token = response.get("nextPageToken")
            if page_token is None:
                break

        return messages if max_results is None else messages[:max_results]

    def _get_message_sync(
        self,
        message_id: str,
        format: str,
        metadata_headers: list[str] | None,
    ) -> dict[str, Any]:
        assert self._service is not None
        request = (
            self._service.users()
            .messages()
            .get(userId=_USER_ID, id=message_id, format=format, metadataHeaders=metadata_headers)
        )
        return self._execute(request)

    def _send_message_sync(self, body: dict[str, Any]) -> dict[str, Any]:
        assert self._service is not None
        request = self._service.users().messages().send(userId=_USER_ID, body=body)
        return self._execute(request)

    def _create_draft_sync(self, body: dict[str, Any]) -> dict[str, Any]:
        assert self._service is not None
        request = self._service.users().drafts().create(userId=_USER_ID, body=body)
        return self._execute(request)
