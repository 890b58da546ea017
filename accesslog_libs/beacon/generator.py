"""
Tracking beacon generation.

Produces beacon records for load and integration testing, the browser
tracker script served to sites, the loader snippet that embeds it and
the 1x1 transparent GIF used for pixel tracking.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from string import Template
from typing import Any, Callable, Optional
from urllib.parse import urlparse

from accesslog_libs.crypto.tokens import random_string

logger = logging.getLogger(__name__)

SESSION_PREFIX = "alt_"
SESSION_RANDOM_LENGTH = 9
DEFAULT_SCRIPT_URL = "https://cdn.example.com/tracker.js"
DEFAULT_SESSION_TIMEOUT = 1800

_DECIMAL_INT = re.compile(r"[+-]?[0-9]+")

CSV_HEADER = (
    "app_id",
    "session_id",
    "url",
    "referrer",
    "user_agent",
    "ip_address",
    "timestamp",
)

# GIF89a, 1x1, transparent
GIF_BEACON = bytes(
    [
        0x47, 0x49, 0x46, 0x38, 0x39, 0x61,
        0x01, 0x00, 0x01, 0x00,
        0x80, 0x00, 0x00,
        0x00, 0x00, 0x00, 0xFF, 0xFF, 0xFF,
        0x21, 0xF9, 0x04, 0x01, 0x00, 0x00, 0x00, 0x00,
        0x2C, 0x00, 0x00, 0x00, 0x00, 0x01, 0x00, 0x01, 0x00, 0x00,
        0x02, 0x02, 0x44, 0x01, 0x00,
        0x3B,
    ]
)  # fmt: skip

TRACKER_TEMPLATE = Template(
    """
(function() {
    'use strict';

    // Settings
    var config = {
        endpoint: ${endpoint},
        version: ${version},
        debug: ${debug},
        respectDNT: ${respect_dnt},
        sessionTimeout: ${session_timeout},
        customParams: ${custom_params}
    };

    function log(message) {
        if (config.debug) {
            console.log('[ALT Tracker]', message);
        }
    }

    if (config.respectDNT && (navigator.doNotTrack === '1' || window.doNotTrack === '1')) {
        log('Do Not Track is enabled, tracking disabled');
        return;
    }

    // Session id persisted across pages until idle for sessionTimeout seconds
    function sessionId() {
        var now = Date.now();
        var id = null;
        try {
            id = localStorage.getItem('alt_session_id');
            var last = parseInt(localStorage.getItem('alt_session_ts'), 10);
            if (!id || isNaN(last) || now - last > config.sessionTimeout * 1000) {
                id = 'alt_' + now.toString(36) + Math.random().toString(36).slice(2, 11);
                localStorage.setItem('alt_session_id', id);
            }
            localStorage.setItem('alt_session_ts', String(now));
        } catch (error) {
            log('Session storage unavailable: ' + error.message);
        }
        return id;
    }

    /* Page and browser data sent with every hit */
    function collectData() {
        var data = {
            app_id: window.ALT_CONFIG ? window.ALT_CONFIG.app_id : null,
            client_sub_id: window.ALT_CONFIG ? window.ALT_CONFIG.client_sub_id : null,
            module_id: window.ALT_CONFIG ? window.ALT_CONFIG.module_id : null,
            url: window.location.href,
            referrer: document.referrer,
            user_agent: navigator.userAgent,
            screen_res: screen.width + 'x' + screen.height,
            language: navigator.language,
            timezone: Intl.DateTimeFormat().resolvedOptions().timeZone,
            session_id: sessionId(),
            timestamp: new Date().toISOString()
        };

        for (var key in config.customParams) {
            if (Object.prototype.hasOwnProperty.call(config.customParams, key)) {
                data[key] = config.customParams[key];
            }
        }

        var extra = window.ALT_CUSTOM_PARAMS || {};
        for (var name in extra) {
            if (Object.prototype.hasOwnProperty.call(extra, name)) {
                data[name] = extra[name];
            }
        }

        return data;
    }

    function sendData(data) {
        log('Sending tracking data: ' + JSON.stringify(data));
        var apiKey = window.ALT_CONFIG ? window.ALT_CONFIG.api_key : null;

        if (window.fetch) {
            var headers = {'Content-Type': 'application/json'};
            if (apiKey) {
                headers['X-API-Key'] = apiKey;
            }
            fetch(config.endpoint, {
                method: 'POST',
                headers: headers,
                body: JSON.stringify(data)
            })
            .then(function(response) {
                if (response.ok) {
                    log('Data sent successfully');
                } else {
                    log('Failed to send data: ' + response.status);
                }
            })
            .catch(function(error) {
                log('Error sending data: ' + error.message);
            });
        } else {
            // Fallback for browsers without fetch
            var xhr = new XMLHttpRequest();
            xhr.open('POST', config.endpoint, true);
            xhr.setRequestHeader('Content-Type', 'application/json');
            if (apiKey) {
                xhr.setRequestHeader('X-API-Key', apiKey);
            }
            xhr.onreadystatechange = function() {
                if (xhr.readyState === 4) {
                    if (xhr.status >= 200 && xhr.status < 300) {
                        log('Data sent successfully');
                    } else {
                        log('Failed to send data: ' + xhr.status);
                    }
                }
            };
            xhr.send(JSON.stringify(data));
        }
    }

    function track() {
        try {
            sendData(collectData());
        } catch (error) {
            log('Error in track function: ' + error.message);
        }
    }

    if (document.readyState === 'loading') {
        document.addEventListener('DOMContentLoaded', track);
    } else {
        track();
    }

    window.addEventListener('beforeunload', function() {
        if (!navigator.sendBeacon) {
            return;
        }
        var data = collectData();
        data.event_type = 'page_exit';
        navigator.sendBeacon(config.endpoint, JSON.stringify(data));
    });

    window.ALT_Track = track;
    window.ALT = {
        track: track,
        setCustomParams: function(params) {
            window.ALT_CUSTOM_PARAMS = params;
        }
    };

    log('ALT Tracker v' + config.version + ' loaded');
})();
"""
)

EMBED_TEMPLATE = Template(
    """<script>
(function() {
    var script = document.createElement('script');
    script.async = true;
    script.src = ${script_url};
    script.setAttribute('data-app-id', ${app_id});
${optional_attributes}    var firstScript = document.getElementsByTagName('script')[0];
    firstScript.parentNode.insertBefore(script, firstScript);
})();
</script>
"""
)


class BeaconConfigError(ValueError):
    """Beacon configuration is missing or invalid."""


@dataclass(slots=True, frozen=True)
class Beacon:
    """A single generated tracking hit."""

    app_id: int
    session_id: str
    url: str
    referrer: str
    user_agent: str
    ip_address: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "app_id": self.app_id,
            "session_id": self.session_id,
            "url": self.url,
            "referrer": self.referrer,
            "user_agent": self.user_agent,
            "ip_address": self.ip_address,
            "timestamp": self.timestamp.isoformat(),
        }

    def csv_row(self) -> list[str]:
        """Values in ``CSV_HEADER`` order."""
        return [str(value) for value in self.to_dict().values()]


@dataclass(slots=True, frozen=True)
class BeaconConfig:
    """Settings rendered into the tracker script."""

    endpoint: str
    version: str
    debug: bool = False
    minify: bool = False
    custom_params: dict[str, str] = field(default_factory=dict)
    respect_dnt: bool = False
    session_timeout: int = DEFAULT_SESSION_TIMEOUT  # seconds of inactivity

    @classmethod
    def from_config(cls, config: Any, **overrides: Any) -> BeaconConfig:
        """Build from a ``Config`` class (``BEACON_ENDPOINT``, ``BEACON_VERSION``)."""
        values: dict[str, Any] = {
            "endpoint": config.BEACON_ENDPOINT,
            "version": config.BEACON_VERSION,
        }
        values.update(overrides)
        return cls(**values)


@dataclass(slots=True, frozen=True)
class EmbedConfig:
    """Settings for the loader snippet pasted into customer pages."""

    app_id: str
    client_sub_id: str = ""
    module_id: str = ""
    script_url: str = DEFAULT_SCRIPT_URL

    @classmethod
    def from_config(cls, config: Any, app_id: str, **overrides: Any) -> EmbedConfig:
        """Build with ``script_url`` taken from ``BEACON_SCRIPT_URL``."""
        return cls(app_id=app_id, script_url=config.BEACON_SCRIPT_URL, **overrides)


def _js_literal(value: Any) -> str:
    """Encode a value as a JavaScript literal that is safe inside <script>."""
    return json.dumps(value).replace("</", "<\\/")


def minify(code: str) -> str:
    """
    Strip comments and collapse whitespace in JavaScript source.

    String literals are copied untouched, so ``'https://...'`` survives.
    Regular expression literals are not recognized.
    """
    out: list[str] = []
    i = 0
    n = len(code)
    pending_space = False

    while i < n:
        ch = code[i]

        if ch in "'\"`":
            if pending_space and out:
                out.append(" ")
            pending_space = False
            start = i
            i += 1
            while i < n and code[i] != ch:
                i += 2 if code[i] == "\\" else 1
            i += 1
            out.append(code[start:i])
        elif code.startswith("//", i):
            end = code.find("\n", i)
            i = n if end == -1 else end
        elif code.startswith("/*", i):
            end = code.find("*/", i + 2)
            i = n if end == -1 else end + 2
            pending_space = True
        elif ch.isspace():
            pending_space = True
            i += 1
        else:
            if pending_space and out:
                out.append(" ")
            pending_space = False
            out.append(ch)
            i += 1

    return "".join(out).strip()


def generate_gif_beacon() -> bytes:
    """The 43-byte transparent 1x1 GIF89a pixel."""
    return GIF_BEACON


class BeaconGenerator:
    """
    Generates beacons, tracker scripts and embed snippets.

    Args:
        clock: Returns the current time; defaults to UTC now
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def new_session_id(self) -> str:
        """``alt_<YYYYmmddHHMMSS>_<9 alphanumerics>``"""
        stamp = self._clock().strftime("%Y%m%d%H%M%S")
        return f"{SESSION_PREFIX}{stamp}_{random_string(SESSION_RANDOM_LENGTH)}"

    def generate_beacon(
        self,
        app_id: int,
        session_id: str = "",
        url: str = "/",
        referrer: str = "",
        user_agent: str = "",
        ip_address: str = "",
    ) -> Beacon:
        """Create a beacon; an empty ``session_id`` gets a fresh one."""
        return Beacon(
            app_id=app_id,
            session_id=session_id or self.new_session_id(),
            url=url,
            referrer=referrer,
            user_agent=user_agent,
            ip_address=ip_address,
            timestamp=self._clock(),
        )

    def generate_beacon_with_config(
        self,
        config: BeaconConfig,
        session_id: str = "",
        url: str = "/",
        referrer: str = "",
        user_agent: str = "",
        ip_address: str = "",
    ) -> Beacon:
        """
        Create a beacon whose app id comes from ``config.custom_params``.

        A missing or non-integer ``app_id`` parameter yields app id 0.
        """
        raw = str(config.custom_params.get("app_id", "")).strip()
        app_id = int(raw) if _DECIMAL_INT.fullmatch(raw) else 0
        return self.generate_beacon(
            app_id, session_id, url, referrer, user_agent, ip_address
        )

    def validate_config(self, config: BeaconConfig) -> None:
        """
        Check a tracker script configuration.

        Raises:
            BeaconConfigError: If the endpoint is missing or not an absolute
                http(s) URL, the version is missing, or the session timeout
                is not a positive integer
        """
        if not config.endpoint:
            raise BeaconConfigError("endpoint is required")
        parsed = urlparse(config.endpoint)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise BeaconConfigError(f"invalid endpoint URL: {config.endpoint}")
        if not config.version:
            raise BeaconConfigError("version is required")
        if isinstance(config.session_timeout, bool) or not isinstance(
            config.session_timeout, int
        ):
            raise BeaconConfigError("session_timeout must be an integer")
        if config.session_timeout <= 0:
            raise BeaconConfigError("session_timeout must be positive")

    def generate_javascript(self, config: BeaconConfig) -> str:
        """
        Render the tracker script.

        Raises:
            BeaconConfigError: If the configuration is invalid
        """
        self.validate_config(config)

        script = TRACKER_TEMPLATE.substitute(
            endpoint=_js_literal(config.endpoint),
            version=_js_literal(config.version),
            debug=_js_literal(config.debug),
            respect_dnt=_js_literal(config.respect_dnt),
            session_timeout=_js_literal(config.session_timeout),
            custom_params=_js_literal(dict(config.custom_params)),
        )
        logger.debug(
            "Rendered tracker script (version=%s, params=%d)",
            config.version,
            len(config.custom_params),
        )

        if config.minify:
            return minify(script)
        return script

    def generate_minified_javascript(self, config: BeaconConfig) -> str:
        return minify(self.generate_javascript(config))

    def generate_custom_javascript(self, app_id: str, config: BeaconConfig) -> str:
        """Render the tracker script with ``app_id`` added to the custom params."""
        params = {**config.custom_params, "app_id": app_id}
        return self.generate_javascript(dataclasses.replace(config, custom_params=params))

    def generate_embed_code(self, config: EmbedConfig) -> str:
        """
        Render the ``<script>`` loader snippet.

        The client-sub-id and module-id attributes are only emitted when set.

        Raises:
            BeaconConfigError: If ``app_id`` or ``script_url`` is empty
        """
        if not config.app_id:
            raise BeaconConfigError("app_id is required")
        if not config.script_url:
            raise BeaconConfigError("script_url is required")

        optional = ""
        if config.client_sub_id:
            optional += (
                "    script.setAttribute('data-client-sub-id', "
                f"{_js_literal(config.client_sub_id)});\n"
            )
        if config.module_id:
            optional += (
                "    script.setAttribute('data-module-id', "
                f"{_js_literal(config.module_id)});\n"
            )

        return EMBED_TEMPLATE.substitute(
            script_url=_js_literal(config.script_url),
            app_id=_js_literal(config.app_id),
            optional_attributes=optional,
        )

    def generate_gif_beacon(self) -> bytes:
        return generate_gif_beacon()
