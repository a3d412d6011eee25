"""
Browser tab control for agents over the macOS automation bridge.

Lists, closes and activates tabs of a Chromium-family browser by running
AppleScript through osascript. Tabs are addressed by their stable Tab ID,
re-resolved against a fresh snapshot on every call; the positional
close_tab path survives only for backward compatibility.
"""

__version__ = "2.0.0"
