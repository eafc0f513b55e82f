"""In-memory stand-in for the keyring module, shared by several test modules."""

import time


class MemoryBackend:
    pass


class FakeKeyring:
    def __init__(self, backend=None):
        self.passwords = {}
        self.backend = backend if backend is not None else MemoryBackend()

    def get_keyring(self):
        return self.backend

    def get_password(self, service, username):
        return self.passwords.get((service, username))

    def set_password(self, service, username, password):
        self.passwords[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise Exception("password not found") from None


def make_token(*, expires_in=3600, extra=None):
    """Create a realistic token dict."""
    now = time.time()
    token = {
        "access_token": "eyJ.test.token",
        "token_type": "bearer",
        "expires_in": expires_in,
        "expires_at": now + expires_in,
    }
    if extra:
        token.update(extra)
    return token
