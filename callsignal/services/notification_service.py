import asyncio
import json
from typing import Dict, List, Optional

import httpx
from google.oauth2 import service_account
import google.auth.transport.requests

from callsignal.core.config import settings
from callsignal.core.exceptions import NotificationFailedException
from callsignal.core.log_config import logger
from callsignal.schemas.notification import MulticastResult, SendResult

SCOPES = ['https://www.googleapis.com/auth/firebase.messaging']
FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"


def load_service_account_info() -> dict:
    """
    Reads the Firebase service account from FIREBASE_SERVICE_ACCOUNT_KEY
    (inline JSON) or, failing that, from FIREBASE_SERVICE_ACCOUNT_FILE.
    """
    if settings.firebase_service_account_key:
        return json.loads(settings.firebase_service_account_key)
    try:
        with open(settings.firebase_service_account_file, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        raise RuntimeError(
            "Firebase service account key not found. Set FIREBASE_SERVICE_ACCOUNT_KEY "
            f"or create {settings.firebase_service_account_file}"
        )


def build_message(token: str, data: Dict[str, str]) -> dict:
    """
    Builds a data-only FCM v1 message that is delivered with high priority
    and wakes the app in the background on both Android and iOS.
    """
    return {
        "message": {
            "token": token,
            "data": {key: str(value) for key, value in data.items()},
            "android": {"priority": "HIGH"},
            "apns": {
                "headers": {"apns-priority": "10"},
                "payload": {"aps": {"content-available": 1}},
            },
        }
    }


class NotificationService:
    """
    Sends push notifications to batches of device tokens through the FCM
    HTTP v1 API. Every token gets its own request so that one bad token
    never affects delivery to the others.
    """

    def __init__(
        self,
        credentials=None,
        project_id: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._credentials = credentials
        self.project_id = project_id
        self._client = http_client

    @property
    def fcm_url(self) -> str:
        return FCM_SEND_URL.format(project_id=self.project_id)

    def start(self):
        """Loads credentials and opens the shared HTTP client. Called once at startup."""
        if self._credentials is None:
            info = load_service_account_info()
            self._credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
            self.project_id = self.project_id or settings.fcm_project_id or info.get('project_id')
        if not self.project_id:
            raise RuntimeError("FCM project id is not configured")
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.fcm_timeout_seconds)
        logger.info(f"Notification service ready for FCM project {self.project_id}")

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Notification service HTTP client closed.")

    def _refresh_credentials(self):
        request = google.auth.transport.requests.Request()
        self._credentials.refresh(request)

    async def _get_access_token(self) -> str:
        if not self._credentials.valid:
            # google-auth refreshes over blocking HTTP
            await asyncio.to_thread(self._refresh_credentials)
        return self._credentials.token

    async def _send_one(self, headers: dict, token: str, data: Dict[str, str]) -> SendResult:
        response = await self._client.post(self.fcm_url, headers=headers, json=build_message(token, data))
        if response.is_success:
            try:
                message_id = response.json().get("name")
            except ValueError:
                message_id = None
            return SendResult(token=token, success=True, message_id=message_id)

        try:
            error = response.json().get("error", {})
        except ValueError:
            error = {"message": response.text}
        reason = error.get("status") or str(response.status_code)
        if error.get("message"):
            reason = f"{reason}: {error['message']}"
        return SendResult(token=token, success=False, error=reason)

    async def send_multicast(self, tokens: List[str], data: Dict[str, str]) -> MulticastResult:
        """
        Sends the same data payload to every token concurrently.

        Args:
            tokens: FCM registration tokens. An empty list sends nothing.
            data: Message data; values are sent as strings.

        Returns:
            MulticastResult with one SendResult per token, in token order.

        Raises:
            NotificationFailedException: If no access token could be obtained,
                or FCM could not be reached for any token.
        """
        if not tokens:
            return MulticastResult()

        try:
            access_token = await self._get_access_token()
        except Exception as e:
            logger.error(f"Failed to obtain FCM access token: {e}")
            raise NotificationFailedException(details=f"Could not authenticate with FCM: {e}") from e

        headers = {
            'Authorization': f'Bearer {access_token}',
            'Content-Type': 'application/json; UTF-8',
        }

        responses = await asyncio.gather(
            *(self._send_one(headers, token, data) for token in tokens),
            return_exceptions=True,
        )

        results = []
        transport_errors = []
        for token, response in zip(tokens, responses):
            if isinstance(response, httpx.TransportError):
                transport_errors.append(response)
                results.append(SendResult(token=token, success=False, error=f"Transport error: {response}"))
            elif isinstance(response, Exception):
                results.append(SendResult(token=token, success=False, error=str(response)))
            else:
                results.append(response)

        if len(transport_errors) == len(tokens):
            logger.error(f"FCM unreachable for all {len(tokens)} tokens: {transport_errors[0]}")
            raise NotificationFailedException(details=f"FCM unreachable: {transport_errors[0]}")

        return MulticastResult(responses=results)
