"""Gestion Proyectos backend: projects, tasks, photographic evidence and compliance catalog."""

__version__ = "0.1.0"
