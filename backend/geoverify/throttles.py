from rest_framework.throttling import ScopedRateThrottle


class GeoverifyScopedRateThrottle(ScopedRateThrottle):
    """Scoped throttle that falls back to the 'default' rate for unscoped views."""

    default_scope = 'default'

    def allow_request(self, request, view):
        if not getattr(view, self.scope_attr, None):
            setattr(view, self.scope_attr, self.default_scope)
        return super().allow_request(request, view)
