"""
VDI Assignment Broker.

Tracks ownership of a fixed pool of virtual desktops among authenticated users:
- Users claim a free VDI or request one held by another user
- Holders approve or reject incoming requests
- Every state change is pushed to connected clients over WebSocket
- Targeted request alerts reach only the current holder
- Configuration from broker.yml, JSON logging, Prometheus metrics
"""

__version__ = "1.0.0"
