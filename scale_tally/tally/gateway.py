"""HTTP transport to the Tally agent.

Documents are POSTed to ``http://<host>:<port>/`` as text/xml. Failures are
returned as SyncResult values rather than raised, so batch callers can
carry on past a single bad record. There is no retry here; retries are
explicit re-invocations by the caller.
"""

import asyncio
import logging
from typing import Optional

import requests

from ..config import Config
from ..exceptions import ErrorType
from ..models.schema import SyncResult, TallyConfig
from .codec import build_godown_xml, build_stock_item_xml, build_unit_xml
from .response import read_import_response

logger = logging.getLogger(__name__)


class TallySyncGateway:
    """
    Sends import documents to Tally and classifies the outcome.

    Outcomes:
        - no response (refused / timed out): CONNECTION_FAILED
        - non-2xx HTTP status: TRANSPORT_ERROR
        - 2xx with LINEERROR / nonzero ERRORS: BUSINESS_ERROR
        - otherwise success
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        voucher_timeout: float = Config.VOUCHER_TIMEOUT_S,
        probe_timeout: float = Config.CONNECTION_PROBE_TIMEOUT_S
    ):
        self.session = session or requests.Session()
        self.voucher_timeout = voucher_timeout
        self.probe_timeout = probe_timeout
        self.logger = logging.getLogger(self.__class__.__name__)

    async def send_voucher(self, xml: str, config: TallyConfig) -> SyncResult:
        """
        Post an import document to the Tally agent.

        Args:
            xml: Voucher or master document
            config: Active Tally configuration

        Returns:
            SyncResult describing the outcome
        """
        return await asyncio.to_thread(self._post, xml, config)

    def _post(self, xml: str, config: TallyConfig) -> SyncResult:
        url = config.base_url

        try:
            response = self.session.post(
                url,
                data=xml.encode('utf-8'),
                headers={"Content-Type": "text/xml"},
                timeout=self.voucher_timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            self.logger.error(f"Tally Agent unreachable at {url}: {e}")
            return SyncResult(
                success=False,
                message=f"Tally Agent Connection Failed: {e}",
                error_type=ErrorType.CONNECTION_FAILED,
                xml_sent=xml,
            )
        except requests.RequestException as e:
            self.logger.error(f"Request to Tally Agent failed: {e}")
            return SyncResult(
                success=False,
                message=f"Tally Agent Request Failed: {e}",
                error_type=ErrorType.TRANSPORT_ERROR,
                xml_sent=xml,
            )

        body = response.text or ""

        if not 200 <= response.status_code < 300:
            self.logger.error(f"Tally Agent returned HTTP {response.status_code}")
            return SyncResult(
                success=False,
                message=f"Tally Agent Connection Failed: HTTP {response.status_code}",
                error_type=ErrorType.TRANSPORT_ERROR,
                xml_sent=xml,
                response_raw=body,
            )

        outcome = read_import_response(body)
        if outcome.error:
            self.logger.warning(f"Tally rejected import: {outcome.error}")
            return SyncResult(
                success=False,
                message=outcome.error,
                error_type=ErrorType.BUSINESS_ERROR,
                xml_sent=xml,
                response_raw=body,
            )

        self.logger.info(f"Tally import accepted (voucher id: {outcome.voucher_id or 'n/a'})")
        return SyncResult(
            success=True,
            message="Sync Successful",
            voucher_id=outcome.voucher_id,
            response_raw=body,
        )

    async def test_connection(self, config: TallyConfig) -> bool:
        """
        Check whether the Tally agent is reachable.

        The agent has no health endpoint; any HTTP response, including
        4xx/5xx, means it is listening.
        """
        return await asyncio.to_thread(self._probe, config)

    def _probe(self, config: TallyConfig) -> bool:
        try:
            response = self.session.get(config.base_url, timeout=self.probe_timeout)
        except requests.RequestException as e:
            self.logger.warning(f"Tally Agent not reachable at {config.base_url}: {e}")
            return False

        self.logger.info(f"Tally Agent reachable at {config.base_url} (HTTP {response.status_code})")
        return True

    async def create_stock_item(self, item_name: str, unit: str, config: TallyConfig) -> SyncResult:
        return await self.send_voucher(build_stock_item_xml(item_name, unit, config), config)

    async def create_godown(self, godown_name: str, config: TallyConfig) -> SyncResult:
        return await self.send_voucher(build_godown_xml(godown_name, config), config)

    async def create_unit(self, symbol: str, formal_name: str, config: TallyConfig) -> SyncResult:
        return await self.send_voucher(build_unit_xml(symbol, formal_name, config), config)
