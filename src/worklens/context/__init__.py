"""
Work context subsystem.

Components:
- context_models.py: WorkContext, Tag, Project, context state and type
- context_resolver.py: active (id, type) pair, navigation handling
- context_view.py: polymorphic tag/project lookup into a WorkContext
- context_notifier.py: transient "context is changing" pulse
- context_service.py: WorkContextService facade wiring everything together
"""
