"""Internationalization settings.
https://docs.djangoproject.com/en/5.1/topics/i18n/
"""

LANGUAGE_CODE = "en"
TIME_ZONE = "Asia/Kolkata"
USE_I18N = True
USE_TZ = True

LANGUAGE = [("en", "English"), ("hi", "Hindi")]
