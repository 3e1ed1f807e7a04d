"""Raster sampling backends."""

import asyncio
import logging
import math
from typing import Callable, Dict, Optional, Protocol, Tuple, Union

import aiohttp
import numpy as np

from alert_dashboard.core.config import MAX_RETRIES, QUERY_TIMEOUT, RETRY_DELAY
from alert_dashboard.core.errors import BackendUnavailableError, NoDataError
from alert_dashboard.models.layer_record import Coordinate, RasterHandle

logger = logging.getLogger(__name__)


class RasterBackend(Protocol):
    """Resolves a (raster, point) pair to a scalar value."""

    async def sample(self, raster: RasterHandle, point: Coordinate, scale_meters: float) -> float:
        """
        Sample a raster at a point.

        Raises:
            SampleError: If there is no value or the backend fails
        """
        ...


class HttpRasterClient:
    """Client for a raster sampling HTTP service.

    The service answers ``GET {base_url}/sample`` with JSON ``{"value": ...}``,
    where a null value (or a 404) means the raster has no data at the point.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = QUERY_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
    ):
        """
        Initialize raster client.

        Args:
            base_url: Service root URL
            timeout: Total timeout per HTTP request in seconds
            max_retries: Attempts before giving up on server errors
            retry_delay: Base delay between attempts in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self.session

    async def close(self):
        """Close the HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()

    async def sample(self, raster: RasterHandle, point: Coordinate, scale_meters: float) -> float:
        """
        Sample a raster at a point.

        Args:
            raster: Raster to sample
            point: Point to sample at
            scale_meters: Sampling scale in meters

        Returns:
            Raster value at the point

        Raises:
            NoDataError: If the raster has no value at the point
            BackendUnavailableError: If the service keeps failing
        """
        session = await self.get_session()
        url = f"{self.base_url}/sample"
        params = {
            "asset": raster.asset_id,
            "band": raster.band,
            "lon": str(point.lon),
            "lat": str(point.lat),
            "scale": str(scale_meters),
        }

        for attempt in range(self.max_retries):
            try:
                async with session.get(url, params=params) as response:
                    if response.status == 200:
                        payload = await response.json()
                        value = payload.get("value")
                        if value is None:
                            raise NoDataError(f"No {raster.band} value at ({point.lon}, {point.lat})")
                        return float(value)
                    elif response.status == 404:
                        raise NoDataError(f"Point ({point.lon}, {point.lat}) is outside raster coverage")
                    else:
                        logger.warning(
                            f"HTTP {response.status} for {url} (attempt {attempt + 1}/{self.max_retries})"
                        )
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                logger.warning(f"Error sampling {url}: {e!r} (attempt {attempt + 1}/{self.max_retries})")

            if attempt < self.max_retries - 1:
                await asyncio.sleep(self.retry_delay * (attempt + 1))

        logger.error(f"Failed to sample raster after {self.max_retries} attempts: {url}")
        raise BackendUnavailableError(f"Raster service unavailable at {self.base_url}")


class GridRasterBackend:
    """In-process backend over numpy arrays covering a lon/lat box.

    Samples the nearest pixel. Pixels equal to ``nodata`` or NaN have no data.
    The optional delay (seconds, or a callable returning seconds) emulates
    service latency so responses can complete out of order.
    """

    def __init__(
        self,
        bands: Dict[str, np.ndarray],
        bounds: Tuple[float, float, float, float],
        nodata: float = 0,
        delay: Union[float, Callable[[], float]] = 0.0,
    ):
        """
        Initialize grid backend.

        Args:
            bands: Band name to 2D array (row 0 is the northern edge)
            bounds: (min_lon, min_lat, max_lon, max_lat)
            nodata: Value treated as missing data
            delay: Artificial latency per sample
        """
        min_lon, min_lat, max_lon, max_lat = bounds
        if min_lon >= max_lon or min_lat >= max_lat:
            raise ValueError(f"Invalid bounds: {bounds}")

        for name, array in bands.items():
            if np.ndim(array) != 2:
                raise ValueError(f"Band {name} must be a 2D array")

        self.bands = {name: np.asarray(array) for name, array in bands.items()}
        self.bounds = bounds
        self.nodata = nodata
        self.delay = delay

    def _pixel_index(self, shape: Tuple[int, int], point: Coordinate) -> Optional[Tuple[int, int]]:
        min_lon, min_lat, max_lon, max_lat = self.bounds
        if not (min_lon <= point.lon <= max_lon and min_lat <= point.lat <= max_lat):
            return None

        rows, cols = shape
        row = int((max_lat - point.lat) / (max_lat - min_lat) * rows)
        col = int((point.lon - min_lon) / (max_lon - min_lon) * cols)
        return min(row, rows - 1), min(col, cols - 1)

    async def sample(self, raster: RasterHandle, point: Coordinate, scale_meters: float) -> float:
        """
        Sample a band at a point.

        Args:
            raster: Raster whose band is sampled
            point: Point to sample at
            scale_meters: Ignored, pixels are sampled at native resolution

        Returns:
            Pixel value

        Raises:
            NoDataError: If the point is outside the grid or the pixel is nodata
            BackendUnavailableError: If the band does not exist
        """
        delay = self.delay() if callable(self.delay) else self.delay
        if delay > 0:
            await asyncio.sleep(delay)

        array = self.bands.get(raster.band)
        if array is None:
            raise BackendUnavailableError(f"Unknown band: {raster.band}")

        index = self._pixel_index(array.shape, point)
        if index is None:
            raise NoDataError(f"Point ({point.lon}, {point.lat}) is outside raster coverage")

        value = float(array[index])
        if math.isnan(value) or value == self.nodata:
            raise NoDataError(f"No {raster.band} value at ({point.lon}, {point.lat})")

        return value


# Synthetic coverage over central Africa used when no raster service is configured
DEMO_BOUNDS = (-20.0, -30.0, 50.0, 15.0)


def build_demo_backend(
    seed: int = 0,
    max_delay: float = 0.0,
    shape: Tuple[int, int] = (180, 280),
    bounds: Tuple[float, float, float, float] = DEMO_BOUNDS,
) -> GridRasterBackend:
    """
    Create a grid backend with random alert rasters.

    Bands match the default layers: 'Date' (YYJJJ codes for 2019-2024),
    'Alert' (confidence 2 or 3) and 'forest_baseline'. About half the pixels
    have no alert.

    Args:
        seed: Random seed
        max_delay: Upper bound of the random latency per sample in seconds
        shape: Grid size (rows, cols)
        bounds: (min_lon, min_lat, max_lon, max_lat)

    Returns:
        GridRasterBackend instance
    """
    rng = np.random.default_rng(seed)

    years = rng.integers(19, 25, size=shape)
    days = rng.integers(1, 366, size=shape)
    dates = years * 1000 + days
    dates[rng.random(shape) < 0.5] = 0

    confidence = np.where(dates > 0, rng.integers(2, 4, size=shape), 0)
    forest = (rng.random(shape) < 0.7).astype(np.int64)

    if max_delay > 0:
        def delay() -> float:
            return float(rng.uniform(0, max_delay))
    else:
        delay = 0.0

    return GridRasterBackend(
        bands={"Date": dates, "Alert": confidence, "forest_baseline": forest},
        bounds=bounds,
        delay=delay,
    )
