import jwt

TEST_SIGNING_KEY = "test-signing-key-not-used-by-google-at-all"


def _id_token(sub, email):
    return jwt.encode({"sub": sub, "email": email}, TEST_SIGNING_KEY, algorithm="HS256")


def google_token_response(sub="google-sub-1", email="ada@example.com", **extra):
    id_token = _id_token(sub, email)
    return {
        "access_token": "g-access",
        "token_type": "Bearer",
        "expires_in": 3599,
        "refresh_token": "g-refresh",
        "id_token": id_token,
        **extra,
    }


class FakeProvider:
    """Routes ``request_json`` calls by URL prefix and records them."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def route(self, prefix, response):
        self.routes[prefix] = response

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        for prefix, response in self.routes.items():
            if url.startswith(prefix):
                if isinstance(response, Exception):
                    raise response
                return response
        msg = f"unexpected request to {url}"
        raise AssertionError(msg)
