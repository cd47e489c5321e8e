"""Real-time infrastructure — channels, connection state, reconnection.

Learn: Changes flow through three layers:
1. RealtimeBackend — a transport that opens named channels (Redis pub/sub)
2. ConnectionManager — registry of channels, connection state, backoff
3. SubscriptionBinder — one channel bound to typed insert/update/delete callbacks

Domain synchronizers (housesync.sync) sit on top of the binder.
"""
