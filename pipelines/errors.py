"""Error types raised by the resolution and fetch pipeline."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """The provider cannot be reached because required configuration is missing."""


class FetchFailure(RuntimeError):
    """An observations request for one series returned a non-success status."""

    def __init__(self, series_id: str, status_code: int | None = None) -> None:
        self.series_id = series_id
        self.status_code = status_code
        status = status_code if status_code is not None else "?"
        super().__init__(f"Observations request for {series_id} failed (status={status})")


__all__ = ["ConfigurationError", "FetchFailure"]
