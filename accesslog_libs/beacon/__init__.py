"""
Beacon module - Tracking beacon generation.

Provides:
- generator: Beacons, tracker script, embed snippet and GIF pixel
- cli: The beacon-generator command
"""

from accesslog_libs.beacon.generator import (
    Beacon,
    BeaconConfig,
    BeaconConfigError,
    BeaconGenerator,
    EmbedConfig,
    CSV_HEADER,
    DEFAULT_SESSION_TIMEOUT,
    GIF_BEACON,
    generate_gif_beacon,
    minify,
)

__all__ = [
    "Beacon",
    "BeaconConfig",
    "BeaconConfigError",
    "BeaconGenerator",
    "EmbedConfig",
    "CSV_HEADER",
    "DEFAULT_SESSION_TIMEOUT",
    "GIF_BEACON",
    "generate_gif_beacon",
    "minify",
]
