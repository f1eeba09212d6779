from __future__ import annotations


class InvalidParameters(ValueError):
    """Raised when a required construction parameter is missing or blank."""

    def __init__(self, name: str):
        super().__init__(f"Invalid parameter: {name}")
        self.name = name


class SettingMissing(RuntimeError):
    """Raised when a credential is required but not configured."""

    def __init__(self, field: str):
        super().__init__(f"Storage setting missing: {field}")
        self.field = field
