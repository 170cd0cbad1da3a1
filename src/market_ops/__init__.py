"""Market operations reporting: sessions, field submissions and live admin dashboards."""

__version__ = "1.0.0"
