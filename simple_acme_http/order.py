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
"""Creates certificate orders, validates every authorization concurrently and finalizes the certificate."""
import asyncio
import logging

from acme import errors as acme_errors
from acme import messages

from . import errors
from . import tools
from .accounts import AccountContext
from .authorization import AuthorizationValidator
from .cancellation import CancellationToken
from .certificates import Certificate

logger = logging.getLogger(__name__)

FINALIZE_TIMEOUT = 90


class OrderOrchestrator:
    """Turns an established account and a list of domains into an issued certificate."""

    def __init__(
            self,
            validator: AuthorizationValidator,
            key_type: str = 'ec256',
            pfx_password: str = '',
            finalize_timeout: int = FINALIZE_TIMEOUT
    ):
        """
        Args:
            validator (simple_acme_http.AuthorizationValidator): Runs the HTTP-01 challenge for each authorization.
            key_type (str): The certificate private key type. Options are: [`ec256`, `ec384`, `rsa2048`, `rsa4096`]
            pfx_password (str): The password protecting the issued PKCS#12 container.
            finalize_timeout (int): Seconds to wait for the ACME server to issue the certificate.
        """
        self.validator = validator
        self.key_type = key_type
        self.pfx_password = pfx_password
        self.finalize_timeout = finalize_timeout

    async def issue_certificate(
            self,
            account_context: AccountContext,
            domains: list,
            cancellation: CancellationToken = None
    ) -> Certificate:
        """
        Orders a certificate for `domains`, the first of which becomes the common name. Issuance is all or nothing:
        every authorization must become valid before the order is finalized.

        Raises:
            simple_acme_http.errors.ValidationFailed: When any authorization fails.
            simple_acme_http.errors.ACMETimeout: When any authorization stays pending, or issuance takes too long.
            simple_acme_http.errors.IssuanceFailed: When the ACME server refuses to finalize the order.
            simple_acme_http.errors.OperationCancelled: When cancellation is requested.
        """
        cancellation = cancellation or CancellationToken()
        session = account_context.session

        # The order identifiers are read from the CSR, so the key and CSR are created up front
        private_key = tools.generate_private_key(self.key_type)
        csr = tools.make_csr(private_key, domains)

        cancellation.raise_if_cancelled()
        order = await session.new_order(csr)
        logger.debug("ACME action NewOrder: %s", order.uri)

        cancellation.raise_if_cancelled()
        await self._validate_all(account_context, order.authorizations, cancellation)

        cancellation.raise_if_cancelled()
        return await self._complete_certificate_request(account_context, order, private_key, domains)

    async def _validate_all(
            self,
            account_context: AccountContext,
            authorizations: list,
            cancellation: CancellationToken
    ) -> list:
        """
        Validates every authorization concurrently. All validations run to completion even when one fails; the
        first failure, in authorization order, is raised afterwards.
        """
        results = await asyncio.gather(
            *(self.validator.validate(account_context, authorization, cancellation)
              for authorization in authorizations),
            return_exceptions=True
        )

        for result in results:
            if isinstance(result, BaseException):
                raise result

        return results

    async def _complete_certificate_request(
            self,
            account_context: AccountContext,
            order: messages.OrderResource,
            private_key: bytes,
            domains: list
    ) -> Certificate:
        logger.debug("Creating cert for %s", domains[0])
        try:
            order = await account_context.session.finalize_order(order, self.finalize_timeout)
        except acme_errors.TimeoutError as error:
            raise errors.ACMETimeout(f"Timed out waiting for the certificate for '{domains[0]}'.") from error
        except (messages.Error, acme_errors.Error) as error:
            raise errors.IssuanceFailed(f"Failed to issue the certificate for '{domains[0]}': {error}") from error
        logger.debug("ACME action NewCertificate: %s", order.body.certificate)

        return Certificate(
            fullchain_pem=order.fullchain_pem.encode(),
            private_key_pem=private_key,
            domains=domains,
            pfx_password=self.pfx_password
        )
