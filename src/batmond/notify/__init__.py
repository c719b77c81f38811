"""Alert sinks for the battery monitor.

This package provides:
- AlertSink: the protocol every sink implements
- DesktopNotificationSink: desktop notification backend
- TextSink: plain-text sink enabled by verbose mode
"""

from batmond.notify.desktop import DesktopNotificationSink
from batmond.notify.protocols import AlertSink, ErrorSimulatingSink, MockSink, deliver
from batmond.notify.text import TextSink

__all__ = [
    "AlertSink",
    "DesktopNotificationSink",
    "ErrorSimulatingSink",
    "MockSink",
    "TextSink",
    "deliver",
]
