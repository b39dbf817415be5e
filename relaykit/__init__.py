"""Building blocks for a relay proxy server: lenient JSON parsing, TLS SNI
extraction, socket address helpers, rule matching, DNS resolution and small
utilities."""

__version__ = "0.1.0"