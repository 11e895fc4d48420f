"""Ramp transaction provider client with automatic fallback to JSON fixtures for local development."""

import json
import os
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from spend_tracker.constants import (
    RAMP_API_BASE_URL,
    RAMP_TOKEN_URL,
    RAMP_TOKEN_SCOPE,
    RAMP_CLEARED_STATE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    TOKEN_REFRESH_MARGIN_SECONDS,
)
from spend_tracker.models import ProviderTransaction
from spend_tracker.utils.config_loader import get_section, PROJECT_ROOT
from spend_tracker.utils.errors import ConfigurationError, ProviderError
from spend_tracker.utils.logging import get_logger
from spend_tracker.utils.metrics import provider_request_latency, provider_errors

logger = get_logger(__name__)

STATUS_MESSAGES = {
    401: "Ramp API authentication failed. Check your client credentials.",
    403: "Ramp API access forbidden. Verify your permissions.",
    429: "Ramp API rate limit exceeded. Please try again later.",
}


def parse_ramp_transaction(record: Dict[str, Any]) -> ProviderTransaction:
    """
    Convert a raw Ramp transaction into a ProviderTransaction

    Ramp reports charges as negative amounts; only the magnitude is kept.
    The date is the settlement time, falling back to the authorization time.

    Raises:
        ProviderError: If required fields are missing or malformed
    """
    try:
        card_holder = record.get('card_holder') or {}
        employee_name = " ".join(
            part for part in (card_holder.get('first_name'), card_holder.get('last_name')) if part
        ) or None
        card_id = record.get('card_id') or ""

        return ProviderTransaction(
            external_id=str(record['id']),
            merchant_name=record.get('merchant_name') or "",
            amount=abs(float(record['amount'])),
            occurred_at=record.get('settled_at') or record['user_transaction_time'],
            memo=record.get('memo'),
            category=record.get('sk_category_name'),
            card_last_four=card_id[-4:] or None,
            employee_name=employee_name,
        )
    except (KeyError, TypeError, ValueError) as e:
        # pydantic.ValidationError is a ValueError
        raise ProviderError(f"Malformed transaction record {record.get('id', '<no id>')!r}: {e}") from e


class RampClient:
    """
    Ramp developer API client (OAuth2 client-credentials grant)

    The HTTP session is injected so the process entry point owns its lifecycle.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        session: Optional[requests.Session] = None,
        base_url: str = RAMP_API_BASE_URL,
        token_url: str = RAMP_TOKEN_URL,
        scope: str = RAMP_TOKEN_SCOPE,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ):
        if not client_id or not client_secret:
            raise ConfigurationError(
                "Ramp client ID and secret are required. Set RAMP_CLIENT_ID and RAMP_CLIENT_SECRET."
            )
        self.client_id = client_id
        self.client_secret = client_secret
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip('/')
        self.token_url = token_url
        self.scope = scope
        self.page_size = page_size
        self.timeout_seconds = timeout_seconds

        self._access_token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None

    def _get_access_token(self) -> str:
        """Return a cached token, requesting a new one when absent or near expiry"""
        if self._access_token and self._token_expiry and datetime.now() < self._token_expiry:
            return self._access_token

        try:
            response = self.session.post(
                self.token_url,
                data={
                    'grant_type': 'client_credentials',
                    'client_id': self.client_id,
                    'client_secret': self.client_secret,
                    'scope': self.scope,
                },
                headers={'Accept': 'application/json'},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            provider_errors.labels(status='transport').inc()
            raise ProviderError(f"Failed to authenticate with Ramp API: {e}") from e

        if response.status_code != 200:
            provider_errors.labels(status=str(response.status_code)).inc()
            raise ProviderError(
                f"Failed to authenticate with Ramp API (HTTP {response.status_code})",
                status_code=response.status_code
            )

        try:
            payload = response.json()
            token = payload['access_token']
            expires_in = int(payload.get('expires_in', 0))
        except (ValueError, KeyError, TypeError) as e:
            raise ProviderError(f"Malformed Ramp token response: {e}") from e

        # Refresh a day early, but never hold a token for less than half its life
        lifetime = max(expires_in - TOKEN_REFRESH_MARGIN_SECONDS, expires_in // 2)
        self._access_token = token
        self._token_expiry = datetime.now() + timedelta(seconds=lifetime)
        logger.info("Obtained Ramp access token", expires_in=expires_in)
        return token

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Authenticated GET returning the decoded JSON body"""
        token = self._get_access_token()
        start_time = time.time()

        try:
            response = self.session.get(
                f"{self.base_url}{path}",
                params={k: v for k, v in params.items() if v is not None},
                headers={'Authorization': f"Bearer {token}", 'Accept': 'application/json'},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            provider_errors.labels(status='transport').inc()
            raise ProviderError(f"Ramp API request failed: {e}") from e
        finally:
            provider_request_latency.labels(endpoint=path).observe(time.time() - start_time)

        if response.status_code != 200:
            provider_errors.labels(status=str(response.status_code)).inc()
            raise ProviderError(self._error_message(response), status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"Ramp API returned invalid JSON: {e}") from e

    @staticmethod
    def _error_message(response) -> str:
        status = response.status_code
        if status in STATUS_MESSAGES:
            return STATUS_MESSAGES[status]
        if status >= 500:
            return "Ramp API server error. Please try again later."
        try:
            detail = response.json().get('message')
        except (ValueError, AttributeError):
            detail = None
        return f"Ramp API error (HTTP {status}): {detail or response.reason}"

    def fetch_transactions(
        self,
        period_start: datetime,
        period_end: datetime,
        state: str = RAMP_CLEARED_STATE,
    ) -> List[ProviderTransaction]:
        """
        Fetch every transaction in a period, following page cursors

        Args:
            period_start: First day of the period (inclusive)
            period_end: Last day of the period (inclusive)
            state: Ramp transaction state filter

        Returns:
            Full list of ProviderTransaction for the period

        Raises:
            ProviderError: On transport, HTTP, or payload errors
        """
        transactions: List[ProviderTransaction] = []
        cursor: Optional[str] = None
        page = 0

        while True:
            body = self._get('/transactions', {
                'from_date': period_start.date().isoformat(),
                'to_date': period_end.date().isoformat(),
                'state': state,
                'page_size': self.page_size,
                'page_cursor': cursor,
            })

            records = body.get('data') if isinstance(body, dict) else None
            if not isinstance(records, list):
                raise ProviderError("Malformed Ramp transactions page: missing 'data' list")

            transactions.extend(parse_ramp_transaction(record) for record in records)
            page += 1
            logger.debug("Fetched Ramp transactions page", page=page, records=len(records))

            cursor = (body.get('page') or {}).get('next')
            if not cursor:
                break

        logger.info(
            "Fetched Ramp transactions",
            count=len(transactions),
            pages=page,
            period_start=period_start.date().isoformat(),
            period_end=period_end.date().isoformat()
        )
        return transactions

    def check_health(self) -> bool:
        """
        Check if the Ramp API is reachable with the configured credentials

        Returns:
            True if a one-record request succeeds, False otherwise
        """
        try:
            self._get('/transactions', {'page_size': 1})
            return True
        except ProviderError as e:
            logger.warning(f"Ramp API connection test failed: {e}")
            return False


class FixtureTransactionSource:
    """
    Development provider that serves Ramp-shaped records from a JSON fixture.

    Mirrors RampClient.fetch_transactions so the sync path is identical in dev and production.
    """

    def __init__(self, fixture_path: str):
        path = Path(fixture_path)
        if not path.is_absolute() and not path.exists():
            path = PROJECT_ROOT / path
        self.fixture_path = path

    def _load_records(self) -> List[Dict[str, Any]]:
        try:
            with open(self.fixture_path, 'r') as f:
                payload = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Fixture not found: {self.fixture_path}, returning no transactions")
            return []
        except json.JSONDecodeError as e:
            raise ProviderError(f"Invalid JSON in fixture {self.fixture_path}: {e}") from e

        records = payload.get('data', []) if isinstance(payload, dict) else payload
        if not isinstance(records, list):
            raise ProviderError(f"Fixture {self.fixture_path} must hold a list of transactions")
        return records

    def fetch_transactions(
        self,
        period_start: datetime,
        period_end: datetime,
        state: str = RAMP_CLEARED_STATE,
    ) -> List[ProviderTransaction]:
        start, end = period_start.date(), period_end.date()
        transactions = []
        for record in self._load_records():
            if record.get('state', RAMP_CLEARED_STATE) != state:
                continue
            transaction = parse_ramp_transaction(record)
            if start <= transaction.occurred_at.date() <= end:
                transactions.append(transaction)

        logger.info("Loaded fixture transactions", count=len(transactions), fixture=str(self.fixture_path))
        return transactions

    def check_health(self) -> bool:
        return self.fixture_path.exists()


def create_provider_client(config: Optional[Dict[str, Any]] = None, session: Optional[requests.Session] = None):
    """
    Build the transaction provider for the current environment.

    Production (ENVIRONMENT=production) talks to Ramp with client credentials
    from RAMP_CLIENT_ID / RAMP_CLIENT_SECRET; anything else reads the
    configured JSON fixture.

    Raises:
        ConfigurationError: If production credentials are missing
    """
    provider = get_section(config, 'provider')

    if os.getenv("ENVIRONMENT") == "production":
        logger.info("Using Ramp API provider", base_url=provider['base_url'])
        return RampClient(
            client_id=os.getenv("RAMP_CLIENT_ID", ""),
            client_secret=os.getenv("RAMP_CLIENT_SECRET", ""),
            session=session,
            base_url=provider['base_url'],
            token_url=provider['token_url'],
            scope=provider['scope'],
            page_size=provider['page_size'],
            timeout_seconds=provider['timeout_seconds'],
        )

    logger.info("Using fixture transaction provider (dev mode)", fixture=provider['fixture_path'])
    return FixtureTransactionSource(provider['fixture_path'])
