"""Unified Search: semantic retrieval across chat, issue tracker, wiki and drive."""
