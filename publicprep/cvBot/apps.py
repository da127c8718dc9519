from django.apps import AppConfig


class CvBotConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'cvBot'
