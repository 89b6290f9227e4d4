"""
In-process identity provider

Accounts are keyed by normalized email. Signing in with an unknown email
provisions a new account with the given credential; signing in with a
known email and a different credential is a mismatch.
"""
import hmac
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Tuple

from arena.core.exceptions import AuthorizationDenied, TransportError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    uid: str
    email: str
    created: bool = False


class IdentityProvider:
    def __init__(self):
        self._accounts: Dict[str, Tuple[str, str]] = {}   # email -> (uid, secret)
        self.available = True

    async def sign_in_or_provision(self, email: str, secret: str) -> Identity:
        """
        Authenticate an email, provisioning it on first sight

        Raises:
            AuthorizationDenied: known email, wrong credential
            TransportError: provider unreachable
        """
        if not self.available:
            raise TransportError("Identity provider is unavailable")

        account = self._accounts.get(email)
        if account is None:
            uid = uuid.uuid4().hex
            self._accounts[email] = (uid, secret)
            logger.info(f"Provisioned identity {uid} for {email}")
            return Identity(uid=uid, email=email, created=True)

        uid, stored_secret = account
        if not hmac.compare_digest(stored_secret.encode(), secret.encode()):
            raise AuthorizationDenied("Credential mismatch")
        return Identity(uid=uid, email=email)
