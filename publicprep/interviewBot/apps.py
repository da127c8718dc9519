from django.apps import AppConfig


class InterviewBotConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'interviewBot'

    def ready(self):
        from . import signals  # noqa: F401
