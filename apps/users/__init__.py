"""Users app package.

Defines the email-login user model used as ``AUTH_USER_MODEL`` and the
bridge from an authenticated user to the ``Principal`` value object the
booking services consume. Use ``apps.users.models.CustomUser`` as the
AUTH_USER_MODEL throughout the project.
"""
