"""HTTP client for delivering beacons to the collection endpoint."""

import json
import logging
from typing import Any, Dict, Optional, Union

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from . import __version__
from .exceptions import (
    BeaconContentTypeError,
    BeaconHttpError,
    BeaconNetworkError,
    BeaconTimeoutError,
)
from .schemas import TrackingRecord

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_URL = "http://localhost:8080/api/v1/service/track"


class BeaconSender:
    """POSTs tracking records as JSON and classifies every failure."""

    def __init__(
        self,
        collection_url: str = DEFAULT_COLLECTION_URL,
        timeout_secs: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the beacon sender.

        Args:
            collection_url: Endpoint receiving tracking records
            timeout_secs: HTTP request timeout in seconds
            session: Optional requests session to reuse
        """
        self.collection_url = collection_url
        self.timeout_secs = timeout_secs
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': f'VisitBeacon/{__version__}'
        })

    def send(self, record: Union[TrackingRecord, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Send a single tracking record.

        Args:
            record: TrackingRecord or an already serialized payload dict

        Returns:
            The parsed JSON acknowledgment from the server

        Raises:
            BeaconTimeoutError: Request exceeded timeout_secs
            BeaconNetworkError: Connection or other transport failure
            BeaconHttpError: Status outside 200-299
            BeaconContentTypeError: 2xx response that is not JSON
        """
        payload = record.to_payload() if isinstance(record, TrackingRecord) else record
        request_body = json.dumps(payload, separators=(',', ':'), ensure_ascii=False)

        logger.debug(f"POST {self.collection_url} with {len(request_body)} bytes")
        try:
            response = self.session.post(
                self.collection_url,
                data=request_body.encode('utf-8'),
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout_secs,
            )
        except Timeout as e:
            raise BeaconTimeoutError(self.timeout_secs) from e
        except ConnectionError as e:
            raise BeaconNetworkError(f"Connection error: {e}") from e
        except RequestException as e:
            raise BeaconNetworkError(f"Request error: {e}") from e

        status_code = response.status_code
        if not 200 <= status_code < 300:
            raise BeaconHttpError(status_code, getattr(response, 'reason', None))

        content_type = response.headers.get('content-type')
        if not content_type or 'application/json' not in content_type:
            raise BeaconContentTypeError(content_type)

        try:
            return response.json()
        except ValueError as e:
            raise BeaconContentTypeError(content_type, f"unparsable body: {e}") from e

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
