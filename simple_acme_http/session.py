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
An asyncio-friendly session with an ACME server, bound to one account key. The `acme` client performs blocking
HTTP requests, so every round trip is pushed to a worker thread and awaited.
"""
import asyncio
import datetime
import logging

import josepy as jose
from acme import client
from acme import messages

from . import tools
from .options import USER_AGENT

logger = logging.getLogger(__name__)


class AcmeSession:
    """A thin wrapper around `acme.client.ClientV2` exposing the calls certificate acquisition needs."""

    def __init__(self, acme_client: client.ClientV2, account_key: jose.JWK, directory_url: str) -> None:
        self.acme_client = acme_client
        self.account_key = account_key
        self.directory_url = directory_url

    @classmethod
    async def connect(
            cls,
            directory_url: str,
            account_key: jose.JWK,
            user_agent: str = USER_AGENT,
            verify_ssl: bool = True
    ) -> 'AcmeSession':
        """
        Fetches the ACME directory and opens a session signed with `account_key`.

        Args:
            directory_url (str): The ACME directory URL to interact with.
            account_key (josepy.JWK): The account key requests are signed with.
            user_agent (str): The User-Agent sent to the ACME server.
            verify_ssl (bool): Verify the SSL certificate of the ACME server when making requests.
        """
        def _connect():
            net = client.ClientNetwork(
                account_key,
                alg=tools.signature_algorithm(account_key),
                user_agent=user_agent,
                verify_ssl=verify_ssl
            )
            directory = messages.Directory.from_json(net.get(directory_url).json())
            return client.ClientV2(directory, net=net)

        logger.debug("Fetching ACME directory %s", directory_url)
        return cls(await asyncio.to_thread(_connect), account_key, directory_url)

    async def terms_of_service(self):
        """Returns the terms of service URI advertised in the directory, if any."""
        meta = self.acme_client.directory.meta
        return meta.terms_of_service if meta else None

    async def account(self) -> messages.RegistrationResource:
        """
        Looks up the account registered to this session's key.

        Raises:
            acme.messages.Error: When the ACME server has no account for the key, or rejects the lookup.
        """
        lookup = messages.RegistrationResource(body=messages.Registration())
        return await asyncio.to_thread(self.acme_client.query_registration, lookup)

    async def new_account(self, emails: list) -> messages.RegistrationResource:
        """Registers a new account for this session's key, agreeing to the terms of service."""
        registration = messages.NewRegistration.from_data(email=','.join(emails), terms_of_service_agreed=True)
        return await asyncio.to_thread(self.acme_client.new_account, registration)

    async def agree_to_terms_of_service(
            self, registration: messages.RegistrationResource
    ) -> messages.RegistrationResource:
        """Updates an existing account to record agreement to the terms of service."""
        update = registration.body.update(terms_of_service_agreed=True)
        return await asyncio.to_thread(self.acme_client.update_registration, registration, update)

    async def new_order(self, csr_pem: bytes) -> messages.OrderResource:
        """Creates an order for the identifiers in `csr_pem`, along with one authorization per identifier."""
        return await asyncio.to_thread(self.acme_client.new_order, csr_pem)

    async def authorization(self, authorization: messages.AuthorizationResource) -> tuple:
        """
        Fetches the current state of an authorization.

        Returns:
            tuple: The updated `acme.messages.AuthorizationResource` and the JSON document it was parsed from. The
                HTTP status of a challenge problem is only found in the document, `acme.messages.Error` drops it.
        """
        updated, response = await asyncio.to_thread(self.acme_client.poll, authorization)
        return updated, response.json()

    def challenge_validation(self, challenge: messages.ChallengeBody) -> tuple:
        """
        Computes the token and key authorization for a challenge. No request is made.

        Returns:
            tuple: The challenge token and the key authorization expected at its well-known URL.
        """
        _, validation = challenge.response_and_validation(self.account_key)
        return challenge.chall.encode("token"), validation

    async def answer_challenge(self, challenge: messages.ChallengeBody) -> messages.ChallengeResource:
        """Tells the ACME server the challenge is ready to be validated."""
        response = challenge.response(self.account_key)
        return await asyncio.to_thread(self.acme_client.answer_challenge, challenge, response)

    async def finalize_order(self, order: messages.OrderResource, timeout: int = 90) -> messages.OrderResource:
        """Submits the order CSR and waits up to `timeout` seconds for the certificate to be issued."""
        deadline = datetime.datetime.now() + datetime.timedelta(seconds=timeout)
        return await asyncio.to_thread(self.acme_client.finalize_order, order, deadline)
