"""Realtime infrastructure (Socket.IO, broadcast transports).

This package holds cross-domain realtime primitives so posts and future
features can share one socket server and one broadcast configuration.
"""
