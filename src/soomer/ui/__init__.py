"""GTK front end for the viewer."""

from .viewer import DisplayError, ViewerWindow, run_viewer

__all__ = ["DisplayError", "ViewerWindow", "run_viewer"]
