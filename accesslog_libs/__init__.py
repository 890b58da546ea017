"""
Access Log Tracker shared libraries.

Subpackages:
- crypto: Hashing, tokens, password hashing, AES-GCM and claims tokens
- beacon: Tracking beacon and tracker script generation

Modules:
- config: Environment driven configuration
- logger: Structured logging
- jsonutil: Dot-path JSON helpers and schema checks
- iputil: Client IP resolution and classification
- timeutil: Time bucketing and formatting
"""

__version__ = "0.1.0"
