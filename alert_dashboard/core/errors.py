"""Error types for the layer registry and raster sampling."""


class RegistryError(Exception):
    """Base class for layer registry contract violations."""


class UnknownLayerError(RegistryError):
    """Raised when a layer id is not present in the registry."""

    def __init__(self, layer_id: str):
        self.layer_id = layer_id
        super().__init__(f"Unknown layer: {layer_id}")


class AlreadyAttachedError(RegistryError):
    """Raised when a layer is attached to a map handle twice."""

    def __init__(self, layer_id: str):
        self.layer_id = layer_id
        super().__init__(f"Layer already attached to the map: {layer_id}")


class DuplicateLayerError(RegistryError):
    """Raised when registering a layer whose name is already taken."""

    def __init__(self, layer_id: str):
        self.layer_id = layer_id
        super().__init__(f"Layer already registered: {layer_id}")


class SampleError(Exception):
    """Raster sampling failed.

    Sampling errors are expected at runtime (clicks outside coverage, backend
    outages) and are always turned into a label message, never a crash.
    """

    reason = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoDataError(SampleError):
    """The raster has no value at the sampled point."""

    reason = "no_data"


class BackendUnavailableError(SampleError):
    """The raster backend could not be reached or returned an error."""

    reason = "unavailable"


class SampleTimeoutError(SampleError):
    """The raster backend did not answer in time."""

    reason = "timeout"
