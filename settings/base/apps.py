DJANGO_APPs = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
]

EXTERNAL_APPS = [
    "rest_framework",
]

INTERNAL_APPS = [
    "apps.kpi",
]

INSTALLED_APPS = DJANGO_APPs + EXTERNAL_APPS + INTERNAL_APPS
