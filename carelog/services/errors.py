"""Domain exceptions raised by services and mapped to HTTP errors by the API."""

from __future__ import annotations


class ValidationFailed(ValueError):
    """Input rejected; ``errors`` holds every problem found, not just the first."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class CareFormError(ValidationFailed):
    pass


class ChatSettingsError(ValidationFailed):
    pass


class FamilyAccessDenied(PermissionError):
    pass
