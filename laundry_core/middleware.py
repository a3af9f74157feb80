# laundry_core/middleware.py

from django.utils.deprecation import MiddlewareMixin

from .signals import set_current_user


class CurrentUserMiddleware(MiddlewareMixin):
    """
    Makes request.user available to model signals.

    Must run after AuthenticationMiddleware. Token-authenticated API
    requests are resolved later by DRF, so signals fall back to the
    explicit user stored on the instance.
    """

    def process_request(self, request):
        user = getattr(request, "user", None)

        if user is not None and getattr(user, "is_authenticated", False):
            set_current_user(user)
        else:
            set_current_user(None)

        return None

    def process_response(self, request, response):
        set_current_user(None)
        return response
