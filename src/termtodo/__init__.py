"""termtodo: a terminal todo list with natural-language dates, tags and subtasks."""

__version__ = "0.1.0"
