"""Battery monitor daemon.

Periodically samples the machine's power sources and raises throttled,
severity-classified desktop alerts about their charge.
"""

__version__ = "1.0.0"
