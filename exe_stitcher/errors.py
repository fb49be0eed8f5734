"""Exceptions raised while producing an executable."""


class ProducerError(RuntimeError):
    """Base class for failures raised by exe-stitcher."""


class ConfigurationError(ProducerError):
    """Raised when the inputs of a build cannot work together.

    Examples: a baseline binary without the expected markers, a stripe that
    would embed the output into itself, or an unparseable runtime version.
    """


class TargetResolutionError(ConfigurationError):
    """Raised when a target cannot be resolved from the supplied arguments."""


class PlaceholderNotFoundError(ConfigurationError):
    """Raised when a marker is missing from the baseline binary."""


class PlaceholderOverflowError(ProducerError):
    """Raised when a value does not fit into its placeholder."""


class FabricatorError(ProducerError):
    """Raised by a fabricator that could not transform a buffer."""


class NativeAddonError(ProducerError):
    """Raised when a native addon could not be fetched for a target."""
