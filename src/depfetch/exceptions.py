"""depfetch exception hierarchy.

All public exceptions inherit from DepFetchError, giving callers a single
base class to catch when they want to handle any depfetch-specific failure
without swallowing unrelated errors.

Only operation-level failures are exceptions. Per-dependency resolution
errors, version conflicts and per-artifact fetch failures are carried as
data in the resolution state and the update report.
"""


class DepFetchError(Exception):
    """Base exception for all depfetch errors."""


class ConfigurationError(DepFetchError):
    """Raised when a build file or repository declaration is invalid.

    Covers malformed YAML, unknown cache policies, malformed dependency
    coordinates, and unknown ``${...}`` placeholders in repository roots.
    """


class ForceVersionConflict(ConfigurationError):
    """Raised when two workspace projects pin the same module differently."""


class DescriptorError(DepFetchError):
    """Raised when a POM or ivy.xml descriptor cannot be parsed.

    Never escapes the resolution engine: the message is recorded as a
    resolution error for the dependency being looked up.
    """


class ResolutionIncomplete(DepFetchError):
    """Raised when resolution hits the iteration cap before a fixed point."""


class FetchSchedulingError(DepFetchError):
    """Raised when the artifact batch itself fails, not a single artifact."""


class InvariantViolation(DepFetchError):
    """Raised when a fetch result points outside the local filesystem."""
