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
"""Tests the ACME session adapter of the simple_acme_http package over a mocked acme client."""
import datetime
import unittest
from unittest import mock

import josepy as jose
from acme import challenges
from acme import messages

import simple_acme_http
from simple_acme_http.authorization import format_challenge_errors
from simple_acme_http.tests import TEST_DIRECTORY, TEST_EMAIL
from simple_acme_http.tests.tools import FakeAuthority, challenge_error, challenge_token


class TestAcmeSession(unittest.IsolatedAsyncioTestCase):
    """Checks each session call reaches acme.client.ClientV2 with the expected arguments."""

    def setUp(self):
        """Creates a session around a mocked ClientV2."""
        self.account_key = simple_acme_http.tools.generate_account_key()
        self.acme_client = mock.MagicMock()
        self.session = simple_acme_http.AcmeSession(self.acme_client, self.account_key, TEST_DIRECTORY)
        self.authority = FakeAuthority()

    @mock.patch("simple_acme_http.session.client.ClientV2")
    @mock.patch("simple_acme_http.session.client.ClientNetwork")
    async def test_connect(self, mock_net_cls, mock_client_cls):
        """Checks connecting signs with the account key and reads the directory."""
        mock_net_cls.return_value.get.return_value.json.return_value = {
            "newNonce": "https://acme.test/new-nonce",
            "newAccount": "https://acme.test/new-account",
            "newOrder": "https://acme.test/new-order",
            "meta": {"termsOfService": "https://example.com/terms.pdf"}
        }

        session = await simple_acme_http.AcmeSession.connect(
            TEST_DIRECTORY, self.account_key, user_agent="test-agent", verify_ssl=False
        )

        mock_net_cls.assert_called_once_with(
            self.account_key, alg=jose.RS256, user_agent="test-agent", verify_ssl=False
        )
        mock_net_cls.return_value.get.assert_called_once_with(TEST_DIRECTORY)
        directory = mock_client_cls.call_args[0][0]
        self.assertEqual(directory.meta.terms_of_service, "https://example.com/terms.pdf")
        self.assertEqual(mock_client_cls.call_args[1], {"net": mock_net_cls.return_value})
        self.assertIs(session.acme_client, mock_client_cls.return_value)
        self.assertEqual(session.directory_url, TEST_DIRECTORY)

    async def test_terms_of_service(self):
        """Checks the terms of service come from the directory metadata, when there is any."""
        self.acme_client.directory.meta.terms_of_service = "https://example.com/terms.pdf"
        self.assertEqual(await self.session.terms_of_service(), "https://example.com/terms.pdf")

        self.acme_client.directory.meta = None
        self.assertIsNone(await self.session.terms_of_service())

    async def test_account(self):
        """Checks the account is looked up by key with an empty registration."""
        registration = messages.RegistrationResource(
            body=messages.Registration(status=messages.STATUS_VALID), uri="https://acme.test/acct/1"
        )
        self.acme_client.query_registration.return_value = registration

        self.assertIs(await self.session.account(), registration)
        lookup = self.acme_client.query_registration.call_args[0][0]
        self.assertEqual(lookup.body, messages.Registration())
        self.assertIsNone(lookup.uri)

    async def test_account_missing(self):
        """Checks the ACME server's refusal to find the account reaches the caller."""
        self.acme_client.query_registration.side_effect = messages.Error.with_code(
            "accountDoesNotExist", detail="No account exists with the key"
        )
        with self.assertRaises(messages.Error):
            await self.session.account()

    async def test_new_account(self):
        """Checks every email becomes a mailto contact and the terms of service are agreed to."""
        await self.session.new_account([TEST_EMAIL, "ops@example.com"])

        registration = self.acme_client.new_account.call_args[0][0]
        self.assertIsInstance(registration, messages.NewRegistration)
        self.assertEqual(registration.contact, (f"mailto:{TEST_EMAIL}", "mailto:ops@example.com"))
        self.assertTrue(registration.terms_of_service_agreed)

    async def test_agree_to_terms_of_service(self):
        """Checks an existing registration is updated to agree to the terms of service."""
        registration = messages.RegistrationResource(
            body=messages.Registration(contact=(f"mailto:{TEST_EMAIL}",), terms_of_service_agreed=False),
            uri="https://acme.test/acct/1"
        )
        await self.session.agree_to_terms_of_service(registration)

        regr, update = self.acme_client.update_registration.call_args[0]
        self.assertIs(regr, registration)
        self.assertTrue(update.terms_of_service_agreed)
        self.assertEqual(update.contact, (f"mailto:{TEST_EMAIL}",))

    async def test_new_order(self):
        """Checks the order is created from the CSR."""
        await self.session.new_order(b"-----BEGIN CERTIFICATE REQUEST-----")
        self.acme_client.new_order.assert_called_once_with(b"-----BEGIN CERTIFICATE REQUEST-----")

    async def test_authorization_keeps_document(self):
        """Checks polling returns the parsed authorization with the JSON document it came from."""
        self.authority.script("bad.example.com", "invalid", errors=[challenge_error("dns", "no record found", 400)])
        document = self.authority.authorization_document("bad.example.com", "invalid")
        updated = messages.AuthorizationResource(
            body=messages.Authorization.from_json(document), uri="https://acme.test/authz/bad.example.com"
        )
        response = mock.MagicMock()
        response.json.return_value = document
        self.acme_client.poll.return_value = (updated, response)
        pending = self.authority.authorization_for("bad.example.com")

        authorization, raw = await self.session.authorization(pending)

        self.acme_client.poll.assert_called_once_with(pending)
        self.assertIs(authorization, updated)
        self.assertEqual(authorization.body.status, messages.STATUS_INVALID)
        self.assertEqual(format_challenge_errors(authorization, raw), "dns: no record found, Code = 400")

    async def test_challenge_validation_and_answer(self):
        """Checks the key authorization is the token and account key thumbprint, and the answer is an HTTP-01 response."""
        challenge = self.authority.authorization_for("example.com").body.challenges[0]
        token, key_authorization = self.session.challenge_validation(challenge)

        thumbprint = jose.b64encode(self.account_key.thumbprint()).decode()
        self.assertEqual(token, jose.encode_b64jose(challenge_token("example.com")))
        self.assertEqual(key_authorization, f"{token}.{thumbprint}")
        self.acme_client.answer_challenge.assert_not_called()

        await self.session.answer_challenge(challenge)
        answered, response = self.acme_client.answer_challenge.call_args[0]
        self.assertIs(answered, challenge)
        self.assertIsInstance(response, challenges.HTTP01Response)
        self.assertTrue(response.verify(challenge.chall, self.account_key.public_key()))

    async def test_finalize_order_deadline(self):
        """Checks finalization waits until a deadline `timeout` seconds away."""
        order = mock.MagicMock()
        before = datetime.datetime.now()
        await self.session.finalize_order(order, timeout=30)
        after = datetime.datetime.now()

        finalized, deadline = self.acme_client.finalize_order.call_args[0]
        self.assertIs(finalized, order)
        self.assertGreaterEqual(deadline, before + datetime.timedelta(seconds=30))
        self.assertLessEqual(deadline, after + datetime.timedelta(seconds=30))


if __name__ == "__main__":
    unittest.main()
