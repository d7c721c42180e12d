"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority, ExtractionResult)
- time_resolver.py: relative date/time phrases -> absolute datetimes
- extraction.py: free text -> title, tags, priority, due date
- task_store.py: the task tree (add / subtask / toggle / delete / clear ...)
- query.py: filters, search syntax and derived views
- persistence.py: JSON document codec + file backend
- errors.py: error kinds raised by the above
"""
