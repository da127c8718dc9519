from rest_framework import authentication


class SessionAuthentication(authentication.SessionAuthentication):
    """
    Session auth that advertises a challenge, so DRF answers anonymous
    requests with 401 instead of 403 and the client can tell an expired
    session apart from a permission problem.
    """

    def authenticate_header(self, request):
        return 'Session realm="api"'
