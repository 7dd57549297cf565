"""
Dialer Handoff Package
"""
from leaddesk.infrastructure.dialer.tel_uri import DialHandoff, TelUriDialer

__all__ = ["DialHandoff", "TelUriDialer"]
