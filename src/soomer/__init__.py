"""Soomer: interactive screenshot viewer for Wayland.

Freezes a monitor (or the whole desktop) and lets you:
- Pan the frozen frame by dragging
- Zoom around the cursor with the scroll wheel
- Save the frame, or a fresh full-desktop capture, to disk
"""

__version__ = "0.3.0"
