"""Errors raised for malformed classification configuration."""


class ConfigurationError(ValueError):
    """Raised when setting definitions or lookups are inconsistent.

    Carries every problem found so a batch can be fixed in one pass.
    """

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("Invalid setting configuration:\n  - " + "\n  - ".join(self.problems))
