"""stageboard - terminal Kanban boards for project tasks, incidents and resource requests."""

__version__ = "0.1.0"
