"""Job configuration models.

Policy values for the Vault renewal and revocation jobs.
"""

from datetime import timedelta

from pydantic import BaseModel, Field


class JobsConfig(BaseModel):
    """Recurring job configuration."""

    enabled: bool = Field(default=True, description="Register the Vault jobs on startup")
    batch_limit: int = Field(
        default=0,
        ge=-1,
        description="Max items per run (0 = default limit, -1 = unlimited)",
    )
    renewal_window_seconds: int = Field(
        default=600,
        gt=0,
        description="Look-ahead window for selecting items due for renewal",
    )
    default_next_run_in_seconds: int = Field(
        default=300,
        gt=0,
        description="Delay before the next run when no data-derived schedule exists",
    )

    @property
    def renewal_window(self) -> timedelta:
        return timedelta(seconds=self.renewal_window_seconds)

    @property
    def default_next_run_in(self) -> timedelta:
        return timedelta(seconds=self.default_next_run_in_seconds)
