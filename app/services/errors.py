class InfographicServiceError(Exception):
    """Base class for failures of the upstream AI services."""


class GenerationError(InfographicServiceError):
    """Image synthesis failed or produced no image."""


class AnalysisError(InfographicServiceError):
    """Region analysis failed or returned an unusable payload."""
