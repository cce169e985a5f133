"""
Run configuration.

Defaults live in the analytics modules; this model validates them and
lets environment variables (EMAILNET_*) and CLI flags override them.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field

from community_detection import DEFAULT_EPSILON, DEFAULT_MAX_PASSES
from parallel import DEFAULT_CHUNK_SIZE

ENV_PREFIX = "EMAILNET_"

# Enron-internal addresses, e.g. jane.doe@enron.com, x.y@hr.enron.com
ENRON_DOMAIN_PATTERN = r"@[\w.-]*enron\.com$"


class AddressPolicy(BaseModel):
    """How raw header addresses become vertex identifiers."""

    casefold: bool = Field(True, description="Lower-case addresses so John.Doe@X == john.doe@x.")
    strip_display_name: bool = Field(
        True, description="Keep only the bare address; otherwise keep 'Name <addr>'."
    )
    domain_pattern: Optional[str] = Field(
        None, description="Regex an address must match to be kept (None keeps all)."
    )
    include_cc: bool = Field(True, description="Treat Cc/Bcc recipients like To recipients.")


class AnalysisSettings(BaseModel):
    workers: int = Field(1, ge=1, description="Processes used for per-source BFS work.")
    chunk_size: int = Field(DEFAULT_CHUNK_SIZE, ge=1, description="BFS sources per work unit.")
    epsilon: float = Field(DEFAULT_EPSILON, ge=0, description="Minimum modularity gain per Louvain level.")
    max_passes: int = Field(DEFAULT_MAX_PASSES, ge=1, description="Maximum Louvain aggregation levels.")
    normalize_betweenness: bool = Field(False, description="Report betweenness / ((n-1)(n-2)/2).")
    sample_size: Optional[int] = Field(None, ge=1, description="Analyze a random sample of this many messages.")
    seed: int = Field(42, description="Seed for message sampling.")
    csv_chunk_size: int = Field(20_000, ge=1, description="CSV rows read per chunk.")
    progress: bool = Field(True, description="Show tqdm progress bars.")
    address: AddressPolicy = Field(default_factory=AddressPolicy)

    @classmethod
    def from_env(cls, **overrides) -> "AnalysisSettings":
        """Build settings from EMAILNET_* variables; explicit overrides win."""
        values = {}
        for name in cls.model_fields:
            if name == "address":
                continue
            raw = os.environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw

        address = {}
        for name in AddressPolicy.model_fields:
            raw = os.environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                address[name] = raw

        address.update(overrides.pop("address", None) or {})
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(address=AddressPolicy(**address), **values)
