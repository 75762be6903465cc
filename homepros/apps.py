from django.apps import AppConfig


class HomeprosConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'homepros'
    verbose_name = 'Home services marketplace'
