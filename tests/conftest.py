import pytest


@pytest.fixture
def gdk_pixbuf():
    """GdkPixbuf module, or skip when PyGObject/GdkPixbuf is unavailable."""
    try:
        import gi
        gi.require_version("GdkPixbuf", "2.0")
        from gi.repository import GdkPixbuf
    except (ImportError, ValueError) as e:
        pytest.skip(f"GdkPixbuf unavailable: {e}")
    return GdkPixbuf
