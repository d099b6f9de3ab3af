# Copyright 2025 Jared Hendrickson
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Drives the HTTP-01 challenge of a single authorization to a terminal state."""
import asyncio
import logging

from acme import challenges
from acme import messages

from . import errors
from .accounts import AccountContext
from .cancellation import CancellationToken
from .challenges import ChallengeResponseStore

logger = logging.getLogger(__name__)

# The acme package does not define the 'expired' authorization status. Creating the constant registers it.
STATUS_EXPIRED = messages.Status('expired')

POLL_ATTEMPTS = 60
POLL_INTERVAL = 2


def format_challenge_errors(authorization: messages.AuthorizationResource, document: dict = None) -> str:
    """
    Builds a readable reason from the errors attached to an authorization's challenges, e.g.
    `urn:ietf:params:acme:error:dns: no record found, Code = 400`. Falls back to 'unknown'.

    Args:
        authorization (acme.messages.AuthorizationResource): The authorization in the invalid state.
        document (dict): The JSON document `authorization` was parsed from. Problem statuses are read from it,
            keyed by challenge URL.
    """
    try:
        statuses = {
            challenge['url']: challenge['error'].get('status')
            for challenge in (document or {}).get('challenges', ())
            if challenge.get('error')
        }
        reasons = [
            f"{challenge.error.typ}: {challenge.error.detail}, Code = {statuses.get(challenge.uri)}"
            for challenge in authorization.body.challenges
            if challenge.error is not None
        ]
    except (AttributeError, KeyError, TypeError, ValueError):
        logger.debug("Could not determine reason why validation failed. Response: %s", authorization)
        return "unknown"

    return "; ".join(reasons) or "unknown"


class AuthorizationValidator:
    """
    Proves control of one domain with the HTTP-01 challenge: registers the key authorization in the challenge store,
    asks the ACME server to validate, then polls the authorization until it leaves the pending state.
    """

    def __init__(
            self,
            challenge_store: ChallengeResponseStore,
            poll_attempts: int = POLL_ATTEMPTS,
            poll_interval: float = POLL_INTERVAL
    ):
        self.challenge_store = challenge_store
        self.poll_attempts = poll_attempts
        self.poll_interval = poll_interval

    async def validate(
            self,
            account_context: AccountContext,
            authorization: messages.AuthorizationResource,
            cancellation: CancellationToken = None
    ) -> messages.AuthorizationResource:
        """
        Validates ownership of the domain behind `authorization`.

        Returns:
            acme.messages.AuthorizationResource: The authorization in the valid state.

        Raises:
            simple_acme_http.errors.ChallengeUnavailable: When the ACME server offers no HTTP-01 challenge.
            simple_acme_http.errors.ValidationFailed: When the authorization becomes invalid, revoked or expired.
            simple_acme_http.errors.ACMETimeout: When the authorization is still pending after every poll.
            simple_acme_http.errors.OperationCancelled: When cancellation is requested.
        """
        cancellation = cancellation or CancellationToken()
        session = account_context.session

        cancellation.raise_if_cancelled()
        authorization, _ = await session.authorization(authorization)
        domain = authorization.body.identifier.value
        logger.debug("Requesting authorization to create certificate for %s", domain)

        challenge = self._http01_challenge(authorization)
        token, key_authorization = session.challenge_validation(challenge)
        self.challenge_store.add_challenge_response(token, key_authorization)

        cancellation.raise_if_cancelled()
        logger.debug("Requesting completion of challenge to prove ownership of domain %s", domain)
        await session.answer_challenge(challenge)

        for _ in range(self.poll_attempts):
            cancellation.raise_if_cancelled()
            authorization, document = await session.authorization(authorization)
            status = authorization.body.status
            logger.debug("ACME action GetAuthorization: %s is %s", domain, status)

            if status == messages.STATUS_VALID:
                return authorization
            if status == messages.STATUS_PENDING:
                await asyncio.sleep(self.poll_interval)
                continue
            if status == messages.STATUS_INVALID:
                raise self._invalid_authorization(domain, authorization, document)
            if status == messages.STATUS_REVOKED:
                raise errors.ValidationFailed(
                    f"The authorization to verify domain '{domain}' has been revoked.", domain=domain, status='revoked'
                )
            if status == STATUS_EXPIRED:
                raise errors.ValidationFailed(
                    f"The authorization to verify domain '{domain}' has expired.", domain=domain, status='expired'
                )

            raise errors.UnexpectedStatus(
                f"Unexpected response from server while validating ownership of domain '{domain}': {status}",
                domain=domain,
                status=getattr(status, 'name', str(status))
            )

        raise errors.ACMETimeout(f"Timed out waiting for domain ownership validation of '{domain}'.")

    @staticmethod
    def _http01_challenge(authorization: messages.AuthorizationResource) -> messages.ChallengeBody:
        """
        Raises:
            simple_acme_http.errors.ChallengeUnavailable: When the authorization has no HTTP-01 challenge.
        """
        for challenge in authorization.body.challenges:
            if isinstance(challenge.chall, challenges.HTTP01):
                return challenge

        msg = f"Did not receive challenge information for challenge type {challenges.HTTP01.typ}"
        raise errors.ChallengeUnavailable(msg)

    @staticmethod
    def _invalid_authorization(
            domain: str,
            authorization: messages.AuthorizationResource,
            document: dict
    ) -> errors.ValidationFailed:
        reason = format_challenge_errors(authorization, document)
        logger.error("Failed to validate ownership of domain '%s'. Reason: %s", domain, reason)
        return errors.ValidationFailed(
            f"Failed to validate ownership of domain '{domain}'. Reason: {reason}",
            domain=domain,
            status='invalid',
            reason=reason
        )
