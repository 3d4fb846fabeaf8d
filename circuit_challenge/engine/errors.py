from collections import Counter
from typing import Optional


class ConfigurationError(ValueError):
    """Raised eagerly when a difficulty profile is malformed."""


class GenerationFailure(RuntimeError):
    """
    The generator ran out of attempts. Always recoverable: retry with another
    seed or an easier profile.
    """

    def __init__(self, profile_name: str, attempts: int, reasons: Optional[Counter] = None):
        self.profile_name = profile_name
        self.attempts = attempts
        self.reasons = reasons or Counter()
        super().__init__(
            f"Could not build a puzzle at difficulty '{profile_name}' "
            f"after {attempts} attempts"
        )
