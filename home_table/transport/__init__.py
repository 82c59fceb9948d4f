# -*- coding: utf-8 -*-
"""
WebSocket transport for home tables.
"""

from .hub import TableHub
from .server import create_app

__all__ = ["TableHub", "create_app"]
