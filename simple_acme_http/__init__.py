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
simple_acme_http is a Python ACME client specifically tailored to the HTTP-01 challenge. It registers or reuses an
ACME account, proves control of each domain by serving challenge responses through a challenge store, and hands back
the issued certificate as a PKCS#12 container ready for TLS termination. Although this module is intended for use
with Let's Encrypt, it will support any CA utilizing the ACME v2 protocol.
"""
import asyncio
import logging

from . import errors
from . import tools
from .accounts import Account, AccountContext, AccountManager, AccountRepository, console_consent
from .authorization import AuthorizationValidator
from .cancellation import CancellationToken
from .certificates import Certificate, CertificateRepository
from .challenges import ChallengeResponseStore, InMemoryChallengeResponseStore
from .options import Options
from .order import OrderOrchestrator
from .session import AcmeSession
from .storage import FileSystemRepository

# Constants and Variables
__pdoc__ = {"tests": False}    # Excludes 'tests' submodule from documentation
__all__ = [
    "ACMEClient",
    "Account",
    "AccountContext",
    "AccountManager",
    "AccountRepository",
    "AcmeSession",
    "AuthorizationValidator",
    "CancellationToken",
    "Certificate",
    "CertificateRepository",
    "ChallengeResponseStore",
    "FileSystemRepository",
    "InMemoryChallengeResponseStore",
    "Options",
    "OrderOrchestrator",
    "console_consent",
    "errors",
    "tools",
]

logger = logging.getLogger(__name__)


class ACMEClient:
    """
    The certificate acquisition engine. Composes account bootstrap and certificate ordering into the two public
    operations `ensure_account()` and `issue_certificate()`.
    """

    def __init__(
            self,
            options: Options,
            challenge_store: ChallengeResponseStore,
            account_repository: AccountRepository,
            certificate_repository: CertificateRepository = None,
            consent_provider=console_consent,
            session_factory=AcmeSession.connect
    ):
        """
        Args:
            options (simple_acme_http.Options): The acquisition options.
            challenge_store (simple_acme_http.ChallengeResponseStore): Where HTTP-01 key authorizations are
                registered so the host's HTTP responder can serve them.
            account_repository (simple_acme_http.AccountRepository): Durable storage for the ACME account.
            certificate_repository (simple_acme_http.CertificateRepository): Optional storage `acquire_certificate()`
                saves issued certificates to.
            consent_provider (callable): Asked to agree to the terms of service unless
                `options.accept_terms_of_service` is set.
            session_factory (callable): Coroutine function opening an ACME session. Defaults to
                `AcmeSession.connect`.

        Examples:
            >>> import simple_acme_http
            >>> store = simple_acme_http.InMemoryChallengeResponseStore()
            >>> repository = simple_acme_http.FileSystemRepository("/var/lib/acme")
            >>> client = simple_acme_http.ACMEClient(
            ...     options=simple_acme_http.Options(
            ...         domains=["example.com", "www.example.com"],
            ...         email="admin@example.com",
            ...         accept_terms_of_service=True
            ...     ),
            ...     challenge_store=store,
            ...     account_repository=repository,
            ...     certificate_repository=repository
            ... )
        """
        self.options = options
        self.challenge_store = challenge_store
        self.certificate_repository = certificate_repository
        self.account_manager = AccountManager(
            options,
            account_repository,
            consent_provider=consent_provider,
            session_factory=session_factory
        )
        self.validator = AuthorizationValidator(challenge_store)
        self.orchestrator = OrderOrchestrator(
            self.validator,
            key_type=options.key_type,
            pfx_password=options.pfx_password
        )

    async def ensure_account(self, cancellation: CancellationToken = None) -> AccountContext:
        """
        Loads the persisted ACME account and validates it with the ACME server, or registers a new one.

        Returns:
            simple_acme_http.AccountContext: The established account to issue certificates with.
        """
        return await self.account_manager.ensure_account(cancellation)

    async def issue_certificate(
            self,
            account_context: AccountContext = None,
            cancellation: CancellationToken = None
    ) -> Certificate:
        """
        Requests a certificate for the configured domains. When no `account_context` is given, the account is
        established first.

        Returns:
            simple_acme_http.Certificate: The issued certificate. Nothing is returned unless every domain validated.
        """
        if account_context is None:
            account_context = await self.ensure_account(cancellation)

        domains = self.options.domains
        logger.debug("Requesting certificate for %s from %s", domains, self.options.directory)
        return await self.orchestrator.issue_certificate(account_context, domains, cancellation)

    async def acquire_certificate(self, cancellation: CancellationToken = None) -> Certificate:
        """
        Runs one full acquisition cycle: establishes the account, issues the certificate and, when a certificate
        repository is configured, saves it.
        """
        certificate = await self.issue_certificate(await self.ensure_account(cancellation), cancellation)
        if self.certificate_repository is not None:
            await self.certificate_repository.save(certificate)
        return certificate

    def request_certificate(self, cancellation: CancellationToken = None) -> Certificate:
        """
        Blocking form of `acquire_certificate()` for callers without a running event loop.

        Examples:
            >>> certificate = client.request_certificate()
            >>> certificate.common_name
            'example.com'
        """
        return asyncio.run(self.acquire_certificate(cancellation))
