"""Unread-mail feed poller with sender watches and pluggable output sinks."""
