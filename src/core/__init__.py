"""Core package for teleout.

Core contains routing, throttling, and session logic without any Telethon
specific code, keeping the client behaviour testable against fakes.
"""
