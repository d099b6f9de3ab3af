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
"""
ACME account bootstrap. A persisted account is reused for as long as the ACME server reports it valid; otherwise a
new account is registered with a fresh key and persisted before it is used.
"""
import abc
import asyncio
import dataclasses
import logging
import sys

from acme import errors as acme_errors
from acme import messages

from . import errors
from . import tools
from .cancellation import CancellationToken
from .options import Options
from .session import AcmeSession

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Account:
    """A registered ACME account as it is persisted."""
    email_addresses: tuple
    key_material: bytes
    directory_uri: str


@dataclasses.dataclass(frozen=True)
class AccountContext:
    """An established account: the session signed with its key, its registration, and its persisted form."""
    session: AcmeSession
    registration: messages.RegistrationResource
    account: Account


class AccountRepository(abc.ABC):
    """Durable storage for one ACME account."""

    @abc.abstractmethod
    async def get_account(self):
        """Returns the persisted `Account`, or None when no account has been saved."""

    @abc.abstractmethod
    async def save_account(self, account: Account) -> None:
        """Persists `account`, replacing any account saved before."""


def console_consent(terms_of_service_uri: str) -> bool:
    """
    Asks on the console whether the terms of service are accepted. Only an interactive stdin can give consent; an
    empty answer or 'y' counts as agreement.
    """
    if not sys.stdin or not sys.stdin.isatty():
        return False

    print("By proceeding, you must agree with the ACME server's terms of service.")
    print(terms_of_service_uri)
    answer = input("Do you accept? [Y/n] ").strip().lower()
    return answer in ('', 'y', 'yes')


class AccountManager:
    """Bootstraps or validates the ACME account used to request certificates."""

    def __init__(
            self,
            options: Options,
            repository: AccountRepository,
            consent_provider=console_consent,
            session_factory=AcmeSession.connect
    ):
        """
        Args:
            options (simple_acme_http.Options): The acquisition options.
            repository (simple_acme_http.AccountRepository): Where the account is loaded from and saved to.
            consent_provider (callable): Called with the terms of service URI when `accept_terms_of_service` is not
                set. Must return True to agree.
            session_factory (callable): Coroutine function opening a session for a directory URL and account key.
        """
        self.options = options
        self.repository = repository
        self.consent_provider = consent_provider
        self.session_factory = session_factory

    async def ensure_account(self, cancellation: CancellationToken = None) -> AccountContext:
        """
        Returns a usable account, reusing the persisted one when the ACME server still considers it valid.

        Raises:
            simple_acme_http.errors.TermsOfServiceDeclined: When the terms of service were not agreed to.
            simple_acme_http.errors.InvalidAccount: When the ACME server refuses to register a new account.
            simple_acme_http.errors.OperationCancelled: When cancellation is requested.
        """
        cancellation = cancellation or CancellationToken()
        account = await self.repository.get_account()

        if account is not None:
            context = await self._existing_account(account, cancellation)
            if context is not None:
                return context

        context = await self._register(cancellation)
        logger.debug("Using ACME account %s", context.registration.uri)
        return context

    async def _existing_account(self, account: Account, cancellation: CancellationToken):
        """Validates a persisted account against the ACME server. Returns None when it cannot be used."""
        cancellation.raise_if_cancelled()
        session = await self.session_factory(
            self.options.directory,
            tools.account_key_from_der(account.key_material),
            user_agent=self.options.user_agent,
            verify_ssl=self.options.verify_ssl
        )

        cancellation.raise_if_cancelled()
        try:
            registration = await session.account()
        except (messages.Error, acme_errors.Error) as error:
            logger.warning(
                "An account key for an ACME account was found, but could not be matched to a valid account. "
                "Validation error: %s", error
            )
            return None

        status = registration.body.status
        if status != messages.STATUS_VALID:
            logger.warning(
                "An account key for an ACME account was found, but the account is no longer valid. "
                "Account status: %s. A new account will be registered.", status
            )
            return None

        if registration.body.terms_of_service_agreed is not True:
            cancellation.raise_if_cancelled()
            await self._ensure_agreement(await session.terms_of_service())
            cancellation.raise_if_cancelled()
            registration = await session.agree_to_terms_of_service(registration)

        return AccountContext(session=session, registration=registration, account=account)

    async def _register(self, cancellation: CancellationToken) -> AccountContext:
        """Registers a new account with a freshly generated key and persists it."""
        emails = self.options.email
        account_key = tools.generate_account_key()

        cancellation.raise_if_cancelled()
        session = await self.session_factory(
            self.options.directory,
            account_key,
            user_agent=self.options.user_agent,
            verify_ssl=self.options.verify_ssl
        )

        cancellation.raise_if_cancelled()
        await self._ensure_agreement(await session.terms_of_service())

        logger.info("Creating ACME account registration for %s", ', '.join(emails))
        cancellation.raise_if_cancelled()
        try:
            registration = await session.new_account(emails)
        except (messages.Error, acme_errors.Error) as error:
            raise errors.InvalidAccount(f"The ACME server refused to register a new account: {error}") from error
        logger.debug("ACME action NewRegistration: %s", registration.uri)

        account = Account(
            email_addresses=tuple(emails),
            key_material=tools.account_key_to_der(account_key),
            directory_uri=self.options.directory
        )
        await self.repository.save_account(account)

        return AccountContext(session=session, registration=registration, account=account)

    async def _ensure_agreement(self, terms_of_service_uri) -> None:
        """
        Raises:
            simple_acme_http.errors.TermsOfServiceDeclined: When consent is not given.
        """
        if self.options.accept_terms_of_service:
            logger.info("Terms of service %s have been accepted", terms_of_service_uri)
            return

        if await asyncio.to_thread(self.consent_provider, terms_of_service_uri):
            logger.info("Terms of service %s were agreed to", terms_of_service_uri)
            return

        logger.error("You must accept the terms of service to continue.")
        raise errors.TermsOfServiceDeclined("Could not automatically accept the terms of service.")
