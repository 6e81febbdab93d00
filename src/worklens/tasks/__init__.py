"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskWithSubTasks)
- task_selectors.py: bulk id lookup into the task collection
- task_aggregates.py: today/backlog, done/undone and startable views
- task_metrics.py: per-day worked and remaining time
- task_flatten.py: flat repeatable / worked-on views across today + backlog
"""
