"""Building blocks for serving local development apps on HTTPS .local domains."""

__version__ = "0.1.0"

__all__ = [
    "doctor",
    "health",
    "hostfile",
    "httperr",
    "ipc",
    "log",
    "osutil",
    "portfwd",
    "preflight",
    "protocol",
    "routing",
    "term",
]