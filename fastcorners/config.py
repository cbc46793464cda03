"""
Detector configuration.

A :class:`DetectorConfig` is validated once when it is built and cannot be
changed afterwards, so a detector's behaviour is fixed for its whole life.
Configurations are usually read from the ``fast:`` section of a YAML file
(see ``configs/default.yaml``).
"""

import dataclasses
from dataclasses import dataclass

import numpy as np
import yaml

from fastcorners.detectors.ring import RING_SIZE
from fastcorners.errors import InvalidParameter

# The compass pre-test is only valid for the classic 12-of-16 rule
HIGH_SPEED_ARC_LENGTH = 12


def _is_int(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


@dataclass(frozen=True)
class DetectorConfig:
    """Immutable FAST parameters.

    Parameters
    ----------
    threshold : int
        Intensity delta (0..255) a neighbour must exceed to count as
        brighter or darker than the centre pixel.
    arc_length : int
        Minimum number of contiguous brighter (or darker) ring pixels
        (1..16) for a pixel to be a corner.
    enable_pruning : bool
        Run the 4-point high-speed test before the full arc test.  Only has
        an effect when ``arc_length == 12``.
    enable_suppression : bool
        Remove adjacent detections, keeping the stronger one.
    workers : int
        Number of row bands scanned concurrently.
    """

    threshold: int = 10
    arc_length: int = 12
    enable_pruning: bool = True
    enable_suppression: bool = True
    workers: int = 1

    def __post_init__(self):
        if not _is_int(self.threshold) or not 0 <= self.threshold <= 255:
            raise InvalidParameter(
                f"threshold must be an integer in [0, 255], got {self.threshold!r}")
        if not _is_int(self.arc_length) or not 1 <= self.arc_length <= RING_SIZE:
            raise InvalidParameter(
                f"arc_length must be an integer in [1, {RING_SIZE}], "
                f"got {self.arc_length!r}")
        for name in ("enable_pruning", "enable_suppression"):
            if not isinstance(getattr(self, name), (bool, np.bool_)):
                raise InvalidParameter(
                    f"{name} must be a bool, got {getattr(self, name)!r}")
        if not _is_int(self.workers) or self.workers < 1:
            raise InvalidParameter(
                f"workers must be a positive integer, got {self.workers!r}")

        # Store plain Python scalars even when numpy values were passed in
        object.__setattr__(self, "threshold", int(self.threshold))
        object.__setattr__(self, "arc_length", int(self.arc_length))
        object.__setattr__(self, "enable_pruning", bool(self.enable_pruning))
        object.__setattr__(self, "enable_suppression", bool(self.enable_suppression))
        object.__setattr__(self, "workers", int(self.workers))

    @property
    def uses_high_speed_test(self) -> bool:
        """True when the compass pre-test runs before the arc test."""
        return self.enable_pruning and self.arc_length == HIGH_SPEED_ARC_LENGTH

    @classmethod
    def from_dict(cls, options: dict) -> "DetectorConfig":
        """Build a configuration from a mapping, rejecting unknown keys."""
        if options is None:
            return cls()
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise InvalidParameter(f"unknown detector option(s): {', '.join(unknown)}")
        return cls(**options)

    def replace(self, **changes) -> "DetectorConfig":
        """Return a new, re-validated configuration with *changes* applied."""
        merged = dataclasses.asdict(self)
        merged.update(changes)
        return type(self).from_dict(merged)


def load_config(path: str) -> dict:
    """Read a YAML configuration file into a plain dictionary."""
    with open(path, "r") as fh:
        return yaml.safe_load(fh) or {}
