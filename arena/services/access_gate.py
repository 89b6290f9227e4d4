"""
Access gate - admit an (email, event password) pair and classify it
"""
import hmac
import logging

from arena.core.exceptions import AuthorizationDenied, ValidationError
from arena.core.identity import IdentityProvider
from arena.models import AccessGrant, EventConfig, Role
from arena.services.participants import ParticipantStore
from arena.utils import normalize_email


logger = logging.getLogger(__name__)

DENIED_MESSAGE = "Access denied"


class AccessGate:
    def __init__(self, config: EventConfig, identity: IdentityProvider, participants: ParticipantStore):
        self.config = config
        self.identity = identity
        self.participants = participants

    def classify(self, email: str):
        """Role for an allow-listed email, None if the email is on neither list"""
        if email in self.config.admin_emails:
            return Role.ADMIN
        if email in self.config.participant_emails:
            return Role.PARTICIPANT
        return None

    async def admit(self, email: str, secret: str) -> AccessGrant:
        """
        Authorize a login

        Flow:
        1. Event password must match
        2. Email must be on the admin or participant allow-list
        3. Identity provider signs the email in (or provisions it)
        4. First admission creates the participant record; is_admin is set
           from the admin list only at that moment

        Every rejection raises the same AuthorizationDenied message so the
        caller cannot tell which check failed.

        Raises:
            ValidationError: empty email or password
            AuthorizationDenied: any failed check
            TransportError: identity provider or store unreachable
        """
        email = normalize_email(email)
        secret = (secret or "").strip()

        if not email:
            raise ValidationError("Enter your email.")
        if not secret:
            raise ValidationError("Enter the event password.")

        if not hmac.compare_digest(secret.encode(), (self.config.event_password or "").encode()):
            logger.info(f"❌ Login rejected for {email}: wrong event password")
            raise AuthorizationDenied(DENIED_MESSAGE)

        role = self.classify(email)
        if role is None:
            logger.info(f"❌ Login rejected for {email}: not registered")
            raise AuthorizationDenied(DENIED_MESSAGE)

        try:
            identity = await self.identity.sign_in_or_provision(email, secret)
        except AuthorizationDenied:
            logger.info(f"❌ Login rejected for {email}: credential mismatch")
            raise AuthorizationDenied(DENIED_MESSAGE)

        record, created = await self.participants.create_if_absent(
            identity.uid, email, is_admin=(role == Role.ADMIN)
        )

        # The stored flag decides admin access from here on
        effective_role = Role.ADMIN if record.is_admin else Role.PARTICIPANT
        logger.info(f"✅ Admitted {email} as {effective_role.value} (participant {record.id})")

        return AccessGrant(
            authorized=True,
            role=effective_role,
            participant_id=record.id,
            email=email,
            created=created,
        )
