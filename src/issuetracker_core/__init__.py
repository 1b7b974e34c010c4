"""Issue tracker core: domain services for projects, issues and users."""

__version__ = "1.0.0"
