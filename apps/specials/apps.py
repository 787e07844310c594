from django.apps import AppConfig


class SpecialsConfig(AppConfig):
    name = 'apps.specials'
    verbose_name = 'Specials'
