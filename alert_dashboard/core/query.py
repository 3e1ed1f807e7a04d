"""Point queries triggered by map clicks.

Every click mints a new token. Responses carry the token of the click that
started them and are only shown if that click is still the latest one, so a
slow response can never overwrite the result of a newer click. In-flight
requests are not cancelled; their results are simply dropped.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Set

from alert_dashboard.core.config import (
    EPOCH_YEAR,
    ERROR_TEXT,
    NO_DATA_TEXT,
    PROMPT_TEXT,
    QUERY_TIMEOUT,
    QUERYING_TEXT,
    RESULT_TEXT,
    SAMPLE_SCALE_METERS,
)
from alert_dashboard.core.date_codec import decode_alert_date, format_alert_date
from alert_dashboard.core.errors import NoDataError, SampleError, SampleTimeoutError
from alert_dashboard.core.raster_client import RasterBackend
from alert_dashboard.models.layer_record import Coordinate, RasterHandle

logger = logging.getLogger(__name__)

QueryToken = int


class TokenCounter:
    """Mints strictly increasing query tokens, starting at 1."""

    def __init__(self):
        self._last: QueryToken = 0

    @property
    def current(self) -> QueryToken:
        """Latest minted token, 0 before the first click."""
        return self._last

    def mint(self) -> QueryToken:
        self._last += 1
        return self._last


def is_stale(response_token: QueryToken, current_token: QueryToken) -> bool:
    """Check if a response belongs to a click that has been superseded."""
    return response_token != current_token


@dataclass(frozen=True)
class QueryResult:
    """Outcome of one raster query: a value or a sampling error."""

    token: QueryToken
    value: Optional[float] = None
    error: Optional[SampleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DisplayLabel(Protocol):
    def set_text(self, text: str) -> None:
        ...


class MarkerOverlay(Protocol):
    def set_point(self, point: Coordinate) -> None:
        ...


class PointQueryController:
    """Turns map clicks into raster queries and shows the latest result."""

    def __init__(
        self,
        backend: RasterBackend,
        raster: RasterHandle,
        display: DisplayLabel,
        marker: Optional[MarkerOverlay] = None,
        scale_meters: float = SAMPLE_SCALE_METERS,
        epoch_year: int = EPOCH_YEAR,
        timeout: float = QUERY_TIMEOUT,
    ):
        """
        Initialize the controller.

        Args:
            backend: Raster backend used for sampling
            raster: Raster sampled on click
            display: Label showing the query state and result
            marker: Optional overlay marking the clicked point
            scale_meters: Sampling scale passed to the backend
            epoch_year: Epoch year of the encoded alert dates
            timeout: Seconds before a query counts as failed
        """
        self.backend = backend
        self.raster = raster
        self.display = display
        self.marker = marker
        self.scale_meters = scale_meters
        self.epoch_year = epoch_year
        self.timeout = timeout

        self._tokens = TokenCounter()
        self._last_point: Optional[Coordinate] = None
        self._display_text = ""
        self._pending: Set[asyncio.Task] = set()

        self._set_text(PROMPT_TEXT)

    @property
    def last_token(self) -> QueryToken:
        return self._tokens.current

    @property
    def last_point(self) -> Optional[Coordinate]:
        return self._last_point

    @property
    def display_text(self) -> str:
        return self._display_text

    def _set_text(self, text: str):
        self._display_text = text
        self.display.set_text(text)

    def handle_click(self, point: Coordinate) -> QueryToken:
        """
        Record a click and show that a query is running.

        Must run before the query for this click is issued, so the marker and
        label always reflect the most recent click.

        Args:
            point: Clicked coordinate

        Returns:
            Token identifying this click's query
        """
        token = self._tokens.mint()
        self._last_point = point

        if self.marker is not None:
            self.marker.set_point(point)
        self._set_text(QUERYING_TEXT)

        logger.debug(f"Click {token} at ({point.lon:.5f}, {point.lat:.5f})")
        return token

    async def run_query(self, token: QueryToken, point: Coordinate) -> QueryResult:
        """
        Sample the raster for a click.

        Sampling failures are returned as failed results rather than raised.

        Args:
            token: Token of the click
            point: Clicked coordinate

        Returns:
            QueryResult carrying the token and the value or error
        """
        try:
            value = await asyncio.wait_for(
                self.backend.sample(self.raster, point, self.scale_meters),
                timeout=self.timeout,
            )
        except SampleError as e:
            logger.warning(f"Query {token} failed: {e.message}")
            return QueryResult(token=token, error=e)
        except asyncio.TimeoutError:
            logger.warning(f"Query {token} timed out after {self.timeout}s")
            return QueryResult(token=token, error=SampleTimeoutError(f"No answer after {self.timeout}s"))
        except Exception as e:
            logger.exception(f"Unexpected error in query {token}")
            return QueryResult(token=token, error=SampleError(str(e) or type(e).__name__))

        return QueryResult(token=token, value=value)

    def reconcile(self, result: QueryResult) -> bool:
        """
        Show a query result if it belongs to the latest click.

        Args:
            result: Completed query

        Returns:
            True if the label was updated, False if the result was stale
        """
        if is_stale(result.token, self.last_token):
            logger.debug(f"Dropping stale result {result.token} (latest is {self.last_token})")
            return False

        if result.ok:
            try:
                alert_date = decode_alert_date(result.value, self.epoch_year)
            except NoDataError:
                text = NO_DATA_TEXT
            else:
                text = RESULT_TEXT.format(date=format_alert_date(alert_date))
        elif isinstance(result.error, NoDataError):
            text = NO_DATA_TEXT
        else:
            text = ERROR_TEXT.format(error=result.error.message)

        self._set_text(text)
        return True

    def click(self, point: Coordinate) -> asyncio.Task:
        """
        Handle a click on a running asyncio loop.

        The label switches to the querying text immediately; the result is
        reconciled when the returned task completes.

        Args:
            point: Clicked coordinate

        Returns:
            Task resolving to the QueryResult
        """
        loop = asyncio.get_running_loop()
        token = self.handle_click(point)

        task = loop.create_task(self.run_query(token, point))
        self._pending.add(task)
        task.add_done_callback(self._on_query_done)
        return task

    def _on_query_done(self, task: asyncio.Task):
        self._pending.discard(task)
        if task.cancelled():
            return
        self.reconcile(task.result())

    async def query_point(self, point: Coordinate) -> QueryResult:
        """
        Run one query to completion and show its result.

        Args:
            point: Point to query

        Returns:
            The completed QueryResult
        """
        token = self.handle_click(point)
        result = await self.run_query(token, point)
        self.reconcile(result)
        return result
